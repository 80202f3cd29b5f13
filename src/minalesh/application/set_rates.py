"""Application services: maintain the shipping and tax rate tables."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from minalesh.domain.exceptions import ValidationError
from minalesh.domain.model.rates import ShippingRate, TaxRate
from minalesh.domain.model.value_objects import DEFAULT_CURRENCY, Money
from minalesh.domain.repository.rate_repository import (
    ShippingRateRepository,
    TaxRateRepository,
)


class SetShippingRateHandler:

    def __init__(self, shipping_repo: ShippingRateRepository) -> None:
        self._shipping_repo = shipping_repo

    def handle(
        self,
        method_id: str,
        zone_id: str,
        base_rate: str,
        free_shipping_threshold: str | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> ShippingRate:
        if not method_id or not zone_id:
            raise ValidationError("Shipping method and zone are required")
        existing = self._shipping_repo.find(method_id, zone_id)
        rate = ShippingRate(
            id=existing.id if existing else f"{method_id}:{zone_id}",
            method_id=method_id,
            zone_id=zone_id,
            base_rate=Money.of(base_rate, currency),
            free_shipping_threshold=(
                Money.of(free_shipping_threshold, currency)
                if free_shipping_threshold is not None
                else None
            ),
        )
        self._shipping_repo.save(rate)
        return rate


class SetTaxRateHandler:

    def __init__(self, tax_repo: TaxRateRepository) -> None:
        self._tax_repo = tax_repo

    def handle(
        self,
        name: str,
        country: str,
        rate: str,
        priority: int = 0,
        is_active: bool = True,
    ) -> TaxRate:
        if not name or not country:
            raise ValidationError("Tax rate name and country are required")
        try:
            fraction = Decimal(rate)
        except InvalidOperation:
            raise ValidationError(f"Invalid tax rate: {rate!r}") from None

        tax_rate = TaxRate(
            id=f"{country.upper()}:{name}",
            name=name,
            country=country.upper(),
            rate=fraction,
            priority=priority,
            is_active=is_active,
        )
        self._tax_repo.save(tax_rate)
        return tax_rate
