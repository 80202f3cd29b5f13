"""Application service: Add Coupon use case."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation

from minalesh.domain.exceptions import ValidationError
from minalesh.domain.model.coupon import Coupon, CouponStatus, DiscountType
from minalesh.domain.model.value_objects import DEFAULT_CURRENCY, Money
from minalesh.domain.repository.coupon_repository import CouponRepository


class AddCouponHandler:

    def __init__(self, coupon_repo: CouponRepository) -> None:
        self._coupon_repo = coupon_repo

    def handle(
        self,
        code: str,
        discount_type: str,
        discount_value: str,
        minimum_purchase: str | None = None,
        maximum_discount: str | None = None,
        starts_at: datetime | None = None,
        expires_at: datetime | None = None,
        product_ids: list[str] | None = None,
        currency: str = DEFAULT_CURRENCY,
    ) -> Coupon:
        if self._coupon_repo.get_by_code(code) is not None:
            raise ValidationError(f"Coupon code '{code.upper()}' already exists")

        try:
            kind = DiscountType(discount_type)
        except ValueError:
            raise ValidationError(
                "Discount type must be 'percentage' or 'fixed_amount'"
            ) from None
        try:
            value = Decimal(discount_value)
        except InvalidOperation:
            raise ValidationError(f"Invalid discount value: {discount_value!r}") from None

        coupon = Coupon(
            id=str(uuid.uuid4()),
            code=code,
            discount_type=kind,
            discount_value=value,
            status=CouponStatus.ACTIVE,
            minimum_purchase=(
                Money.of(minimum_purchase, currency) if minimum_purchase else None
            ),
            maximum_discount=(
                Money.of(maximum_discount, currency) if maximum_discount else None
            ),
            starts_at=starts_at,
            expires_at=expires_at,
            product_ids=frozenset(product_ids or ()),
        )
        self._coupon_repo.save(coupon)
        return coupon
