"""Application service: Set Inventory use case.

Sets physical stock for a product or one of its variants.  The write
goes through the reservation service so a restock never interleaves
with a reservation check, and stock never drops below what active
holds have already promised.
"""

from __future__ import annotations

from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)


class SetInventoryHandler:

    def __init__(self, reservations: InventoryReservationService) -> None:
        self._reservations = reservations

    def handle(self, product_id: str, quantity: int, variant_id: str | None = None) -> None:
        """Set the physical stock level for a product or variant."""
        self._reservations.set_stock(product_id, variant_id, quantity)
