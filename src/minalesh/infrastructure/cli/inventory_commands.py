"""CLI commands for stock levels and inventory holds."""

from __future__ import annotations

import click

from minalesh.application.manage_reservations import (
    ExtendReservationHandler,
    ReleaseReservationHandler,
    SweepExpiredReservationsHandler,
)
from minalesh.application.set_inventory import SetInventoryHandler
from minalesh.application.show_inventory import ShowInventoryHandler
from minalesh.domain.exceptions import DomainException
from minalesh.infrastructure.bootstrap import (
    product_repository,
    reservation_service,
)
from minalesh.infrastructure.cli.common import fail


@click.command("set")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--variant", "variant_id", default=None, help="Variant ID.")
@click.option("--quantity", required=True, type=int, help="Physical quantity in stock.")
def inventory_set(product_id: str, variant_id: str | None, quantity: int) -> None:
    """Set the physical stock level for a product or variant."""
    handler = SetInventoryHandler(reservations=reservation_service())

    try:
        handler.handle(product_id=product_id, quantity=quantity, variant_id=variant_id)
    except DomainException as exc:
        raise fail(exc)

    target = product_id if variant_id is None else f"{product_id}/{variant_id}"
    click.echo(f"Stock for {target} set to {quantity}")


@click.command("show")
def inventory_show() -> None:
    """Show stock, held and available quantities."""
    handler = ShowInventoryHandler(
        product_repo=product_repository(),
        reservations=reservation_service(),
    )
    lines = handler.handle()

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(f"{'Product':<10} {'Name':<28} {'Stock':>7} {'Held':>6} {'Available':>10}")
    click.echo("-" * 65)
    for line in lines:
        key = line.product_id if line.variant_id is None else f"{line.product_id}/{line.variant_id}"
        click.echo(
            f"{key:<10} {line.name:<28} {line.stock:>7} {line.held:>6} {line.available:>10}"
        )


@click.command("sweep")
def inventory_sweep() -> None:
    """Release every inventory hold past its expiry."""
    handler = SweepExpiredReservationsHandler(reservations=reservation_service())
    released = handler.handle()
    click.echo(f"Released {released} expired reservation(s).")


@click.command("release")
@click.option("--reservation", "reservation_id", required=True, help="Reservation ID.")
def inventory_release(reservation_id: str) -> None:
    """Release one inventory hold (no-op if already closed)."""
    handler = ReleaseReservationHandler(reservations=reservation_service())

    try:
        changed = handler.handle(reservation_id)
    except DomainException as exc:
        raise fail(exc)

    if changed:
        click.echo(f"Reservation {reservation_id} released.")
    else:
        click.echo(f"Reservation {reservation_id} was already closed.")


@click.command("extend")
@click.option("--reservation", "reservation_id", required=True, help="Reservation ID.")
@click.option("--minutes", default=None, type=int, help="Minutes to add (default: hold window).")
def inventory_extend(reservation_id: str, minutes: int | None) -> None:
    """Push back the expiry of an active inventory hold."""
    handler = ExtendReservationHandler(reservations=reservation_service())

    try:
        dto = handler.handle(reservation_id, minutes)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Reservation {dto.id} now expires at {dto.expires_at}")
