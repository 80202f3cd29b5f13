"""Shipping and tax rate tables (read-only inputs to pricing)."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from minalesh.domain.exceptions import ValidationError
from minalesh.domain.model.value_objects import Money


@dataclass(frozen=True)
class ShippingRate:
    id: str
    method_id: str
    zone_id: str
    base_rate: Money
    free_shipping_threshold: Money | None = None

    def charge_for(self, discounted_subtotal: Money) -> Money:
        if (
            self.free_shipping_threshold is not None
            and discounted_subtotal >= self.free_shipping_threshold
        ):
            return Money.zero(self.base_rate.currency)
        return self.base_rate.rounded()


@dataclass(frozen=True)
class TaxRate:
    id: str
    name: str
    country: str
    rate: Decimal  # fraction: 0.15 == 15%
    priority: int = 0
    is_active: bool = True

    def __post_init__(self) -> None:
        if not Decimal("0") <= self.rate < Decimal("1"):
            raise ValidationError("Tax rate must be a fraction between 0 and 1")
