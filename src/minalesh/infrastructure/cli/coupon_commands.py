"""CLI commands for coupons."""

from __future__ import annotations

from datetime import datetime, timezone

import click

from minalesh.application.add_coupon import AddCouponHandler
from minalesh.domain.exceptions import DomainException
from minalesh.infrastructure.bootstrap import coupon_repository, settings
from minalesh.infrastructure.cli.common import fail


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


@click.command("add")
@click.option("--code", required=True, help="Coupon code (case-insensitive).")
@click.option(
    "--type",
    "discount_type",
    required=True,
    type=click.Choice(["percentage", "fixed_amount"]),
    help="Discount type.",
)
@click.option("--value", "discount_value", required=True, help="Percent or fixed amount.")
@click.option("--min-purchase", default=None, help="Minimum subtotal to qualify.")
@click.option("--max-discount", default=None, help="Cap for percentage discounts.")
@click.option("--starts", type=click.DateTime(), default=None, help="Start (UTC).")
@click.option("--expires", type=click.DateTime(), default=None, help="End (UTC).")
@click.option("--product", "product_ids", multiple=True, help="Eligible product ID (repeatable).")
def coupon_add(
    code: str,
    discount_type: str,
    discount_value: str,
    min_purchase: str | None,
    max_discount: str | None,
    starts: datetime | None,
    expires: datetime | None,
    product_ids: tuple[str, ...],
) -> None:
    """Create a coupon."""
    handler = AddCouponHandler(coupon_repo=coupon_repository())

    try:
        coupon = handler.handle(
            code=code,
            discount_type=discount_type,
            discount_value=discount_value,
            minimum_purchase=min_purchase,
            maximum_discount=max_discount,
            starts_at=_as_utc(starts),
            expires_at=_as_utc(expires),
            product_ids=list(product_ids),
            currency=settings().currency,
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Coupon {coupon.code} created.")


@click.command("list")
def coupon_list() -> None:
    """List all coupons."""
    coupons = coupon_repository().list_all()

    if not coupons:
        click.echo("No coupons found.")
        return

    click.echo(f"{'Code':<16} {'Type':<14} {'Value':>10} {'Status':<10}")
    click.echo("-" * 53)
    for c in coupons:
        click.echo(
            f"{c.code:<16} {c.discount_type.value:<14} {str(c.discount_value):>10} {c.status.value:<10}"
        )
