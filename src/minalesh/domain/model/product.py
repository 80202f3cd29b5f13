"""Product aggregate.

Products are owned by the catalog, not by the checkout core.  The core
reads price and stock snapshots from them; the only stock mutation it
performs is the permanent decrement when a reservation is consumed,
and that goes through the reservation service.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from minalesh.domain.exceptions import ValidationError
from minalesh.domain.model.value_objects import Money


@dataclass
class ProductVariant:
    id: str
    name: str
    sku: str
    stock_quantity: int = 0


@dataclass
class Product:
    """A product in the catalog.

    ``stock_quantity`` is physical stock for the base product; a variant
    tracks its own stock independently.
    """

    id: str
    name: str
    sku: str
    vendor_id: str
    price: Money
    sale_price: Money | None = None
    stock_quantity: int = 0
    variants: dict[str, ProductVariant] = field(default_factory=dict)

    @property
    def unit_price(self) -> Money:
        """Sale price when present and lower than the list price."""
        if self.sale_price is not None and self.sale_price < self.price:
            return self.sale_price
        return self.price

    def update_price(self, new_price: Money, sale_price: Money | None = None) -> None:
        """Change the product price.

        This does NOT affect any existing orders because orders
        capture a price snapshot at creation time.
        """
        if new_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")
        if sale_price is not None and sale_price >= new_price:
            raise ValidationError("Sale price must be less than the list price")
        self.price = new_price
        self.sale_price = sale_price

    def variant(self, variant_id: str) -> ProductVariant | None:
        return self.variants.get(variant_id)

    def stock_for(self, variant_id: str | None) -> int:
        if variant_id is None:
            return self.stock_quantity
        variant = self.variants.get(variant_id)
        if variant is None:
            raise ValidationError(
                f"Variant '{variant_id}' does not belong to product '{self.id}'"
            )
        return variant.stock_quantity

    def set_stock(self, variant_id: str | None, quantity: int) -> None:
        if quantity < 0:
            raise ValidationError("Stock quantity cannot be negative")
        if variant_id is None:
            self.stock_quantity = quantity
            return
        variant = self.variants.get(variant_id)
        if variant is None:
            raise ValidationError(
                f"Variant '{variant_id}' does not belong to product '{self.id}'"
            )
        variant.stock_quantity = quantity

    def deduct_stock(self, variant_id: str | None, quantity: int) -> None:
        """Permanently remove sold units from physical stock."""
        current = self.stock_for(variant_id)
        if quantity > current:
            raise ValidationError(
                f"Cannot deduct {quantity} of {self.name} "
                f"- only {current} in stock"
            )
        self.set_stock(variant_id, current - quantity)
