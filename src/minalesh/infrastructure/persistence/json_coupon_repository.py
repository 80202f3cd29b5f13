"""JSON-file-backed implementation of CouponRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from minalesh.domain.model.coupon import Coupon, CouponStatus, DiscountType
from minalesh.domain.repository.coupon_repository import CouponRepository
from minalesh.infrastructure.persistence.json_file import (
    JsonFile,
    datetime_from_raw,
    datetime_to_raw,
    money_from_raw,
    money_to_raw,
)


class JsonCouponRepository(CouponRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def get_by_code(self, code: str) -> Coupon | None:
        wanted = code.strip().upper()
        for raw in self._file.load():
            if raw["code"] == wanted:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Coupon]:
        return [self._to_domain(raw) for raw in self._file.load()]

    def save(self, coupon: Coupon) -> None:
        self._file.upsert(self._to_raw(coupon))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(coupon: Coupon) -> dict:
        return {
            "id": coupon.id,
            "code": coupon.code,
            "discount_type": coupon.discount_type.value,
            "discount_value": str(coupon.discount_value),
            "status": coupon.status.value,
            "minimum_purchase": money_to_raw(coupon.minimum_purchase),
            "maximum_discount": money_to_raw(coupon.maximum_discount),
            "starts_at": datetime_to_raw(coupon.starts_at),
            "expires_at": datetime_to_raw(coupon.expires_at),
            "product_ids": sorted(coupon.product_ids),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Coupon:
        return Coupon(
            id=raw["id"],
            code=raw["code"],
            discount_type=DiscountType(raw["discount_type"]),
            discount_value=Decimal(raw["discount_value"]),
            status=CouponStatus(raw.get("status", CouponStatus.ACTIVE.value)),
            minimum_purchase=money_from_raw(raw.get("minimum_purchase")),
            maximum_discount=money_from_raw(raw.get("maximum_discount")),
            starts_at=datetime_from_raw(raw.get("starts_at")),
            expires_at=datetime_from_raw(raw.get("expires_at")),
            product_ids=frozenset(raw.get("product_ids", [])),
        )
