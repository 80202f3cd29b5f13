"""CLI commands for the shipping and tax rate tables."""

from __future__ import annotations

import click

from minalesh.application.set_rates import SetShippingRateHandler, SetTaxRateHandler
from minalesh.domain.exceptions import DomainException
from minalesh.infrastructure.bootstrap import (
    settings,
    shipping_rate_repository,
    tax_rate_repository,
)
from minalesh.infrastructure.cli.common import fail


@click.command("shipping")
@click.option("--method", "method_id", required=True, help="Shipping method ID.")
@click.option("--zone", "zone_id", required=True, help="Shipping zone ID.")
@click.option("--rate", "base_rate", required=True, help="Flat rate (e.g. 150.00).")
@click.option("--free-over", default=None, help="Free shipping threshold.")
def rate_shipping(method_id: str, zone_id: str, base_rate: str, free_over: str | None) -> None:
    """Set the rate for a shipping method in a zone."""
    handler = SetShippingRateHandler(shipping_repo=shipping_rate_repository())

    try:
        rate = handler.handle(
            method_id, zone_id, base_rate, free_over, currency=settings().currency
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Shipping {rate.method_id} in {rate.zone_id}: {rate.base_rate}")


@click.command("tax")
@click.option("--name", required=True, help="Rate name (e.g. VAT).")
@click.option("--country", required=True, help="Country code (e.g. ET).")
@click.option("--rate", required=True, help="Fraction, e.g. 0.15 for 15%.")
@click.option("--priority", default=0, type=int, help="Highest priority wins.")
@click.option("--inactive", is_flag=True, default=False, help="Store the rate disabled.")
def rate_tax(name: str, country: str, rate: str, priority: int, inactive: bool) -> None:
    """Set a tax rate for a country."""
    handler = SetTaxRateHandler(tax_repo=tax_rate_repository())

    try:
        tax_rate = handler.handle(name, country, rate, priority, is_active=not inactive)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Tax {tax_rate.name} for {tax_rate.country}: {tax_rate.rate}")
