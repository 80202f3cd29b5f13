"""Domain service: Pricing / Discount Calculator.

Computes order totals deterministically from cart lines and the
optional coupon / shipping selection:

    subtotal  = sum(unit_price * quantity)
    discount  = coupon discount, clamped to what it discounts
    shipping  = method rate, 0 above the free-shipping threshold
    tax       = (subtotal - discount + shipping) * country rate
    total     = subtotal - discount + shipping + tax

Every component is rounded half-up to 2 decimals before it is summed,
so the total identity holds exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from minalesh.domain.exceptions import ValidationError
from minalesh.domain.model.clock import Clock, utc_now
from minalesh.domain.model.coupon import Coupon
from minalesh.domain.model.order import OrderTotals
from minalesh.domain.model.value_objects import Money, Quantity
from minalesh.domain.repository.coupon_repository import CouponRepository
from minalesh.domain.repository.rate_repository import (
    ShippingRateRepository,
    TaxRateRepository,
)

_logger = logging.getLogger(__name__)

DEFAULT_TAX_RATE = Decimal("0.15")  # Ethiopian VAT
DEFAULT_TAX_COUNTRY = "ET"


@dataclass(frozen=True)
class PriceLine:
    product_id: str
    unit_price: Money  # snapshot taken when the line was priced
    quantity: int

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class PriceBreakdown:
    totals: OrderTotals
    tax_rate: Decimal
    coupon_id: str | None = None
    shipping_zone_id: str | None = None


class PricingCalculator:

    def __init__(
        self,
        coupon_repo: CouponRepository,
        shipping_repo: ShippingRateRepository,
        tax_repo: TaxRateRepository,
        default_tax_rate: Decimal = DEFAULT_TAX_RATE,
        default_country: str = DEFAULT_TAX_COUNTRY,
        clock: Clock = utc_now,
    ) -> None:
        self._coupon_repo = coupon_repo
        self._shipping_repo = shipping_repo
        self._tax_repo = tax_repo
        self._default_tax_rate = default_tax_rate
        self._default_country = default_country
        self._clock = clock

    def calculate(
        self,
        lines: list[PriceLine],
        coupon_code: str | None = None,
        shipping_method_id: str | None = None,
        shipping_zone_id: str | None = None,
        country: str | None = None,
    ) -> PriceBreakdown:
        subtotal = self.subtotal(lines)

        coupon = self._redeemable_coupon(coupon_code, subtotal)
        discount = Money.zero(subtotal.currency)
        if coupon is not None:
            eligible = self._eligible_subtotal(coupon, lines, subtotal.currency)
            if eligible.is_zero:
                _logger.info("Coupon %s has no eligible items; ignored", coupon.code)
                coupon = None
            else:
                discount = coupon.discount_for(eligible)

        discounted = subtotal - discount
        shipping = Money.zero(subtotal.currency)
        zone_id = None
        if shipping_method_id:
            rate = self._shipping_repo.find(shipping_method_id, shipping_zone_id)
            if rate is None:
                raise ValidationError(
                    f"Shipping method '{shipping_method_id}' is not available"
                    + (f" in zone '{shipping_zone_id}'" if shipping_zone_id else "")
                )
            shipping = rate.charge_for(discounted)
            zone_id = rate.zone_id

        tax_rate = self.tax_rate_for(country or self._default_country)
        tax = (discounted + shipping).scaled(tax_rate)
        total = discounted + shipping + tax

        return PriceBreakdown(
            totals=OrderTotals(
                subtotal=subtotal,
                discount=discount,
                shipping=shipping,
                tax=tax,
                total=total,
            ),
            tax_rate=tax_rate,
            coupon_id=coupon.id if coupon is not None else None,
            shipping_zone_id=zone_id,
        )

    def subtotal(self, lines: list[PriceLine]) -> Money:
        if not lines:
            raise ValidationError("Cart must contain at least one item")

        result = Money.zero(lines[0].unit_price.currency)
        for line in lines:
            Quantity(line.quantity)
            result = result + line.line_total
        return result.rounded()

    def tax_rate_for(self, country: str) -> Decimal:
        """Highest-priority active rate for the country, else the default."""
        rates = self._tax_repo.list_active(country.upper())
        if not rates:
            return self._default_tax_rate
        return max(rates, key=lambda r: r.priority).rate

    # --- Internal helpers -----------------------------------------------------

    def _redeemable_coupon(self, code: str | None, subtotal: Money) -> Coupon | None:
        if not code:
            return None
        coupon = self._coupon_repo.get_by_code(code)
        if coupon is None:
            _logger.info("Unknown coupon code %r ignored", code)
            return None
        if not coupon.is_redeemable(self._clock()):
            _logger.info("Coupon %s is not redeemable now; ignored", coupon.code)
            return None
        if not coupon.meets_minimum(subtotal):
            _logger.info(
                "Coupon %s requires a minimum purchase of %s; ignored",
                coupon.code, coupon.minimum_purchase,
            )
            return None
        return coupon

    @staticmethod
    def _eligible_subtotal(coupon: Coupon, lines: list[PriceLine], currency: str) -> Money:
        eligible = Money.zero(currency)
        for line in lines:
            if coupon.applies_to(line.product_id):
                eligible = eligible + line.line_total
        return eligible.rounded()
