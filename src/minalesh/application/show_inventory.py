"""Application service: Show Inventory use case (query)."""

from __future__ import annotations

from dataclasses import dataclass

from minalesh.domain.repository.product_repository import ProductRepository
from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)


@dataclass(frozen=True)
class InventoryLineDTO:
    product_id: str
    variant_id: str | None
    name: str
    sku: str
    stock: int
    held: int
    available: int


class ShowInventoryHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        reservations: InventoryReservationService,
    ) -> None:
        self._product_repo = product_repo
        self._reservations = reservations

    def handle(self) -> list[InventoryLineDTO]:
        lines: list[InventoryLineDTO] = []
        for product in self._product_repo.list_all():
            rows = [(None, product.name, product.sku, product.stock_quantity)]
            rows += [
                (v.id, f"{product.name} ({v.name})", v.sku, v.stock_quantity)
                for v in product.variants.values()
            ]
            for variant_id, name, sku, stock in rows:
                lines.append(
                    InventoryLineDTO(
                        product_id=product.id,
                        variant_id=variant_id,
                        name=name,
                        sku=sku,
                        stock=stock,
                        held=self._reservations.held_quantity(product.id, variant_id),
                        available=self._reservations.available_stock(product.id, variant_id),
                    )
                )
        return lines
