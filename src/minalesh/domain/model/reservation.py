"""InventoryReservation aggregate - a short-lived hold on stock.

A reservation is created ``held`` when a cart line is accepted into a
payment intent and leaves that state exactly once: ``released`` (cancel,
saga rollback, expiry sweep) or ``consumed`` (payment captured).
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from minalesh.domain.exceptions import InvalidStateError, ValidationError


class ReservationStatus(Enum):
    HELD = "held"
    RELEASED = "released"
    CONSUMED = "consumed"


@dataclass
class InventoryReservation:
    """Invariants:

    - ``quantity`` is always positive
    - status moves out of HELD at most once
    - ``order_id`` is only ever set once
    """

    id: str
    product_id: str
    variant_id: str | None
    quantity: int
    user_id: str
    created_at: datetime
    expires_at: datetime
    status: ReservationStatus = ReservationStatus.HELD
    order_id: int | None = None
    released_at: datetime | None = None
    consumed_at: datetime | None = None

    @staticmethod
    def hold(
        product_id: str,
        variant_id: str | None,
        quantity: int,
        user_id: str,
        now: datetime,
        hold_for: timedelta,
    ) -> InventoryReservation:
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if not user_id:
            raise ValidationError("User ID is required to reserve stock")
        return InventoryReservation(
            id=str(uuid.uuid4()),
            product_id=product_id,
            variant_id=variant_id,
            quantity=quantity,
            user_id=user_id,
            created_at=now,
            expires_at=now + hold_for,
        )

    @property
    def is_held(self) -> bool:
        return self.status == ReservationStatus.HELD

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now

    def is_active(self, now: datetime) -> bool:
        """Held and not past its expiry - i.e. still occupying stock."""
        return self.is_held and not self.is_expired(now)

    def release(self, now: datetime) -> bool:
        """Move HELD -> RELEASED.  Returns False (no-op) if already closed."""
        if not self.is_held:
            return False
        self.status = ReservationStatus.RELEASED
        self.released_at = now
        return True

    def consume(self, order_id: int, now: datetime) -> None:
        if not self.is_held:
            raise InvalidStateError(
                f"Reservation {self.id} is {self.status.value}, expected held"
            )
        self.link_to(order_id)
        self.status = ReservationStatus.CONSUMED
        self.consumed_at = now

    def link_to(self, order_id: int) -> None:
        if self.order_id is not None and self.order_id != order_id:
            raise InvalidStateError(
                f"Reservation {self.id} already belongs to order #{self.order_id}"
            )
        self.order_id = order_id

    def extend(self, by: timedelta, now: datetime) -> None:
        if not self.is_active(now):
            raise InvalidStateError(
                f"Reservation {self.id} is no longer active and cannot be extended"
            )
        self.expires_at = self.expires_at + by
