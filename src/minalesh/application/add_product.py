"""Application service: Add Product use case.

The catalog proper lives outside the checkout core; these handlers
exist so products, variants and their stock can be seeded from the CLI.
"""

from __future__ import annotations

from minalesh.domain.exceptions import EntityNotFoundError, ValidationError
from minalesh.domain.model.product import Product, ProductVariant
from minalesh.domain.model.value_objects import DEFAULT_CURRENCY, Money
from minalesh.domain.repository.product_repository import ProductRepository
from minalesh.domain.repository.reservation_repository import ReservationRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        name: str,
        price: str,
        vendor_id: str,
        sku: str | None = None,
        sale_price: str | None = None,
        stock: int = 0,
        currency: str = DEFAULT_CURRENCY,
    ) -> Product:
        """Add a new product to the catalog."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if not vendor_id:
            raise ValidationError("Vendor ID is required")

        all_products = self._product_repo.list_all()
        # Auto-assign ID based on existing products
        next_id = str(max((int(p.id) for p in all_products if p.id.isdigit()), default=0) + 1)
        sku = (sku or f"SKU-{next_id}").strip().upper()
        if any(p.sku == sku for p in all_products):
            raise ValidationError(f"SKU '{sku}' is already in use")

        product = Product(
            id=next_id,
            name=name.strip(),
            sku=sku,
            vendor_id=vendor_id,
            price=Money.of(price, currency),
        )
        product.update_price(
            Money.of(price, currency),
            Money.of(sale_price, currency) if sale_price is not None else None,
        )
        product.set_stock(None, stock)
        self._product_repo.save(product)
        return product


class AddProductVariantHandler:

    def __init__(
        self,
        product_repo: ProductRepository,
        reservation_repo: ReservationRepository,
    ) -> None:
        self._product_repo = product_repo
        self._reservation_repo = reservation_repo

    def handle(
        self,
        product_id: str,
        name: str,
        sku: str | None = None,
        stock: int = 0,
    ) -> ProductVariant:
        if not name or not name.strip():
            raise ValidationError("Variant name is required")

        with self._reservation_repo.lock_stock(product_id):
            product = self._product_repo.get_by_id(product_id)
            if product is None:
                raise EntityNotFoundError(f"Product with ID '{product_id}' not found")

            number = len(product.variants) + 1
            variant_id = f"{product.id}-{number}"
            variant = ProductVariant(
                id=variant_id,
                name=name.strip(),
                sku=(sku or f"{product.sku}-{number}").strip().upper(),
            )
            product.variants[variant_id] = variant
            product.set_stock(variant_id, stock)
            self._product_repo.save(product)
        return variant
