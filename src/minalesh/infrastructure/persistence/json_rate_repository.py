"""JSON-file-backed shipping and tax rate tables."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from minalesh.domain.model.rates import ShippingRate, TaxRate
from minalesh.domain.model.value_objects import DEFAULT_CURRENCY, Money
from minalesh.domain.repository.rate_repository import (
    ShippingRateRepository,
    TaxRateRepository,
)
from minalesh.infrastructure.persistence.json_file import (
    JsonFile,
    money_from_raw,
    money_to_raw,
)


class JsonShippingRateRepository(ShippingRateRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def find(self, method_id: str, zone_id: str | None = None) -> ShippingRate | None:
        for raw in self._file.load():
            if raw["method_id"] != method_id:
                continue
            if zone_id is not None and raw["zone_id"] != zone_id:
                continue
            return self._to_domain(raw)
        return None

    def save(self, rate: ShippingRate) -> None:
        self._file.upsert(
            {
                "id": rate.id,
                "method_id": rate.method_id,
                "zone_id": rate.zone_id,
                "base_rate": str(rate.base_rate.amount),
                "currency": rate.base_rate.currency,
                "free_shipping_threshold": money_to_raw(rate.free_shipping_threshold),
            }
        )

    @staticmethod
    def _to_domain(raw: dict) -> ShippingRate:
        return ShippingRate(
            id=raw["id"],
            method_id=raw["method_id"],
            zone_id=raw["zone_id"],
            base_rate=Money(Decimal(raw["base_rate"]), raw.get("currency", DEFAULT_CURRENCY)),
            free_shipping_threshold=money_from_raw(raw.get("free_shipping_threshold")),
        )


class JsonTaxRateRepository(TaxRateRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    def list_active(self, country: str) -> list[TaxRate]:
        return [
            self._to_domain(raw)
            for raw in self._file.load()
            if raw["country"] == country.upper() and raw.get("is_active", True)
        ]

    def save(self, rate: TaxRate) -> None:
        self._file.upsert(
            {
                "id": rate.id,
                "name": rate.name,
                "country": rate.country,
                "rate": str(rate.rate),
                "priority": rate.priority,
                "is_active": rate.is_active,
            }
        )

    @staticmethod
    def _to_domain(raw: dict) -> TaxRate:
        return TaxRate(
            id=raw["id"],
            name=raw["name"],
            country=raw["country"],
            rate=Decimal(raw["rate"]),
            priority=raw.get("priority", 0),
            is_active=raw.get("is_active", True),
        )
