"""CLI commands for the Product catalog."""

from __future__ import annotations

import click

from minalesh.application.add_product import AddProductHandler, AddProductVariantHandler
from minalesh.domain.exceptions import DomainException
from minalesh.infrastructure.bootstrap import (
    product_repository,
    reservation_repository,
    settings,
)
from minalesh.infrastructure.cli.common import fail


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="List price (e.g. 1000.00).")
@click.option("--vendor", "vendor_id", required=True, help="Vendor ID.")
@click.option("--sku", default=None, help="Stock keeping unit (generated if omitted).")
@click.option("--sale-price", default=None, help="Sale price, lower than the list price.")
@click.option("--stock", default=0, type=int, help="Initial physical stock.")
def product_add(
    name: str,
    price: str,
    vendor_id: str,
    sku: str | None,
    sale_price: str | None,
    stock: int,
) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(product_repo=product_repository())

    try:
        product = handler.handle(
            name=name,
            price=price,
            vendor_id=vendor_id,
            sku=sku,
            sale_price=sale_price,
            stock=stock,
            currency=settings().currency,
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Product #{product.id} '{product.name}' added at {product.unit_price}")


@click.command("add-variant")
@click.option("--id", "product_id", required=True, help="Product ID.")
@click.option("--name", required=True, help="Variant name (e.g. 'Red / XL').")
@click.option("--sku", default=None, help="Variant SKU (generated if omitted).")
@click.option("--stock", default=0, type=int, help="Initial physical stock.")
def product_add_variant(product_id: str, name: str, sku: str | None, stock: int) -> None:
    """Add a variant to an existing product."""
    handler = AddProductVariantHandler(
        product_repo=product_repository(),
        reservation_repo=reservation_repository(),
    )

    try:
        variant = handler.handle(product_id=product_id, name=name, sku=sku, stock=stock)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Variant {variant.id} '{variant.name}' added to product #{product_id}")


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    repo = product_repository()
    products = repo.list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'SKU':<12} {'Name':<24} {'Price':>14} {'Variants':>9}")
    click.echo("-" * 69)
    for p in products:
        click.echo(
            f"{p.id:<6} {p.sku:<12} {p.name:<24} {str(p.unit_price):>14} {len(p.variants):>9}"
        )
