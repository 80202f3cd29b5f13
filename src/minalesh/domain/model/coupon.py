"""Coupon - a read-only rate-table entity consumed by the pricing calculator."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from minalesh.domain.exceptions import ValidationError
from minalesh.domain.model.value_objects import Money


class DiscountType(Enum):
    PERCENTAGE = "percentage"
    FIXED_AMOUNT = "fixed_amount"


class CouponStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    EXPIRED = "expired"


@dataclass
class Coupon:
    """Invariants:

    - ``code`` is stored upper case
    - percentage ``discount_value`` is a percent in (0, 100]
    - ``expires_at`` is after ``starts_at`` when both are set
    """

    id: str
    code: str
    discount_type: DiscountType
    discount_value: Decimal
    status: CouponStatus = CouponStatus.ACTIVE
    minimum_purchase: Money | None = None
    maximum_discount: Money | None = None
    starts_at: datetime | None = None
    expires_at: datetime | None = None
    product_ids: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        self.code = self.code.strip().upper()
        if not self.code:
            raise ValidationError("Coupon code is required")
        if self.discount_value <= 0:
            raise ValidationError("Discount value must be greater than zero")
        if self.discount_type == DiscountType.PERCENTAGE and self.discount_value > 100:
            raise ValidationError("Percentage discount must be between 0 and 100")
        if self.starts_at and self.expires_at and self.expires_at <= self.starts_at:
            raise ValidationError("End date must be after start date")

    def is_redeemable(self, now: datetime) -> bool:
        if self.status != CouponStatus.ACTIVE:
            return False
        if self.starts_at is not None and now < self.starts_at:
            return False
        if self.expires_at is not None and now > self.expires_at:
            return False
        return True

    def applies_to(self, product_id: str) -> bool:
        return not self.product_ids or product_id in self.product_ids

    def meets_minimum(self, subtotal: Money) -> bool:
        return self.minimum_purchase is None or subtotal >= self.minimum_purchase

    def discount_for(self, eligible_subtotal: Money) -> Money:
        """Discount on the eligible amount, never larger than that amount."""
        if self.discount_type == DiscountType.PERCENTAGE:
            discount = eligible_subtotal.scaled(self.discount_value / Decimal(100))
            if self.maximum_discount is not None:
                discount = discount.min(self.maximum_discount)
        else:
            discount = Money(self.discount_value, eligible_subtotal.currency).rounded()
        return discount.min(eligible_subtotal)
