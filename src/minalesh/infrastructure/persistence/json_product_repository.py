"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from minalesh.domain.model.product import Product, ProductVariant
from minalesh.domain.model.value_objects import DEFAULT_CURRENCY, Money
from minalesh.domain.repository.product_repository import ProductRepository
from minalesh.infrastructure.persistence.json_file import JsonFile


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        for raw in self._file.load():
            if raw["id"] == product_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in self._file.load()]

    def save(self, product: Product) -> None:
        self._file.upsert(self._to_raw(product))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "vendor_id": product.vendor_id,
            "price": str(product.price.amount),
            "sale_price": (
                str(product.sale_price.amount) if product.sale_price is not None else None
            ),
            "currency": product.price.currency,
            "stock_quantity": product.stock_quantity,
            "variants": [
                {
                    "id": v.id,
                    "name": v.name,
                    "sku": v.sku,
                    "stock_quantity": v.stock_quantity,
                }
                for v in product.variants.values()
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        currency = raw.get("currency", DEFAULT_CURRENCY)
        return Product(
            id=raw["id"],
            name=raw["name"],
            sku=raw["sku"],
            vendor_id=raw["vendor_id"],
            price=Money(Decimal(raw["price"]), currency),
            sale_price=(
                Money(Decimal(raw["sale_price"]), currency)
                if raw.get("sale_price") is not None
                else None
            ),
            stock_quantity=raw.get("stock_quantity", 0),
            variants={
                v["id"]: ProductVariant(
                    id=v["id"],
                    name=v["name"],
                    sku=v["sku"],
                    stock_quantity=v.get("stock_quantity", 0),
                )
                for v in raw.get("variants", [])
            },
        )
