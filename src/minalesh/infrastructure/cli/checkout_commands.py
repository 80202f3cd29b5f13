"""CLI commands for checkout (payment intent creation)."""

from __future__ import annotations

import click

from minalesh.application.create_payment_intent import CreatePaymentIntentHandler
from minalesh.application.dto import CartItemSpec
from minalesh.domain.exceptions import DomainException
from minalesh.infrastructure.bootstrap import (
    notification_dispatcher,
    order_repository,
    payment_gateway,
    pricing_calculator,
    product_repository,
    reservation_service,
    settings,
)
from minalesh.infrastructure.cli.common import actor, actor_options, fail
from minalesh.infrastructure.cli.order_commands import display_order


def _parse_items(raw: str) -> list[CartItemSpec]:
    """Parse '1:2,3/3-1:1' (product[/variant]:qty) into CartItemSpec list."""
    specs: list[CartItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ProductId[/VariantId]:Quantity'."
            )
        target, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{target}'."
            )
        product_id, _, variant_id = target.strip().partition("/")
        specs.append(
            CartItemSpec(product_id=product_id, quantity=qty, variant_id=variant_id or None)
        )
    return specs


@click.command("create-intent")
@actor_options
@click.option("--items", required=True, help="Items as 'ProductId[/VariantId]:Qty,...'.")
@click.option("--coupon", "coupon_code", default=None, help="Coupon code.")
@click.option("--shipping-method", "shipping_method_id", default=None, help="Shipping method ID.")
@click.option("--shipping-zone", "shipping_zone_id", default=None, help="Shipping zone ID.")
@click.option("--country", default=None, help="Destination country code (e.g. ET).")
@click.option("--city", default=None, help="Destination city.")
@click.option("--address", "street", default=None, help="Street address.")
def checkout_create_intent(
    user_id: str,
    role: str,
    items: str,
    coupon_code: str | None,
    shipping_method_id: str | None,
    shipping_zone_id: str | None,
    country: str | None,
    city: str | None,
    street: str | None,
) -> None:
    """Reserve stock for a cart and open a payment intent."""
    specs = _parse_items(items)
    address = {
        key: value
        for key, value in (("street", street), ("city", city), ("country", country))
        if value
    } or None

    config = settings()
    handler = CreatePaymentIntentHandler(
        order_repo=order_repository(),
        product_repo=product_repository(),
        reservations=reservation_service(),
        pricing=pricing_calculator(),
        gateway=payment_gateway(),
        notifications=notification_dispatcher(),
        gateway_currency=config.gateway_currency,
    )

    try:
        result = handler.handle(
            actor(user_id, role),
            specs,
            shipping_address=address,
            billing_address=address,
            coupon_code=coupon_code,
            shipping_method_id=shipping_method_id,
            shipping_zone_id=shipping_zone_id,
        )
    except DomainException as exc:
        raise fail(exc)

    display_order(result.order)
    click.echo()
    if result.payment is not None:
        click.echo(f"Payment intent: {result.payment.intent_id} ({result.payment.currency})")
    else:
        click.echo("Payment intent: not created (gateway unavailable; retry on capture)")
    click.echo(f"Reservations:   {', '.join(result.reservation_ids)}")
    click.echo(f"Holds expire:   {result.expires_at}")
