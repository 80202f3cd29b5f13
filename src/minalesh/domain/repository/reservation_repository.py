"""Abstract repository for InventoryReservation aggregates.

Besides plain storage, the repository owns the per-product stock lock that
makes the reservation service's check-and-create atomic.  A SQL
implementation would map ``lock_stock`` to ``SELECT ... FOR UPDATE`` on
the product row; file and in-memory implementations use
process-local locks.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime

from minalesh.domain.model.reservation import InventoryReservation


class ReservationRepository(ABC):

    @abstractmethod
    def lock_stock(self, product_id: str) -> AbstractContextManager[None]:
        """Serialize every stock write to one product, variants included."""

    @abstractmethod
    def get_by_id(self, reservation_id: str) -> InventoryReservation | None:
        """Return a reservation by its ID, or None."""

    @abstractmethod
    def list_held(
        self, product_id: str, variant_id: str | None
    ) -> list[InventoryReservation]:
        """Return HELD reservations for a product/variant, expired or not."""

    @abstractmethod
    def list_expired(self, now: datetime) -> list[InventoryReservation]:
        """Return HELD reservations whose ``expires_at`` has passed."""

    @abstractmethod
    def list_by_order(self, order_id: int) -> list[InventoryReservation]:
        """Return every reservation linked to an order."""

    @abstractmethod
    def save(self, reservation: InventoryReservation) -> None:
        """Persist a new or updated reservation."""
