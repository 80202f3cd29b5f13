"""Application services for maintaining inventory holds.

``SweepExpiredReservationsHandler`` is meant to run on a schedule
(cron, a worker loop); the others back operator commands.
"""

from __future__ import annotations

from minalesh.application.dto import ReservationDTO
from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)


class SweepExpiredReservationsHandler:

    def __init__(self, reservations: InventoryReservationService) -> None:
        self._reservations = reservations

    def handle(self) -> int:
        """Release every expired hold.  Returns how many were released."""
        return self._reservations.sweep_expired()


class ReleaseReservationHandler:

    def __init__(self, reservations: InventoryReservationService) -> None:
        self._reservations = reservations

    def handle(self, reservation_id: str) -> bool:
        return self._reservations.release(reservation_id)


class ExtendReservationHandler:

    def __init__(self, reservations: InventoryReservationService) -> None:
        self._reservations = reservations

    def handle(self, reservation_id: str, minutes: int | None = None) -> ReservationDTO:
        return ReservationDTO.from_reservation(
            self._reservations.extend(reservation_id, minutes)
        )
