"""CLI commands for the Order aggregate."""

from __future__ import annotations

import click

from minalesh.application.cancel_order import CancelOrderHandler
from minalesh.application.dto import OrderDTO
from minalesh.application.show_order import ShowOrderHandler
from minalesh.application.update_order_status import UpdateOrderStatusHandler
from minalesh.domain.exceptions import DomainException
from minalesh.domain.model.order_status import OrderStatus
from minalesh.infrastructure.bootstrap import (
    notification_dispatcher,
    order_repository,
    reservation_service,
)
from minalesh.infrastructure.cli.common import actor, actor_options, fail


def display_order(dto: OrderDTO, with_events: bool = False) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  {dto.order_number}  (status={dto.status}, payment={dto.payment_status})")
    click.echo(f"Customer: {dto.user_id}")
    click.echo(f"Created:  {dto.created_at}")
    click.echo()

    click.echo(f"  {'Product':<28} {'Qty':>5} {'Price':>12} {'Total':>12}")
    click.echo(f"  {'-'*60}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<28} {item.quantity:>5} {item.unit_price:>12} {item.line_total:>12}"
        )
    click.echo(f"  {'-'*60}")
    for label, amount in (
        ("Subtotal", dto.subtotal),
        ("Discount", dto.discount_amount),
        ("Shipping", dto.shipping_amount),
        ("Tax", dto.tax_amount),
        (f"Order Total ({dto.currency})", dto.total_amount),
    ):
        click.echo(f"  {label:<35} {amount:>25}")

    if dto.progress:
        click.echo()
        click.echo(f"Progress: {' > '.join(dto.progress)}")

    if with_events:
        click.echo()
        click.echo("History:")
        for event in dto.events:
            click.echo(f"  {event.created_at}  {event.event_type:<24} {event.description}")


@click.command("show")
@actor_options
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(user_id: str, role: str, order_id: int) -> None:
    """Show details and history of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(actor(user_id, role), order_id)
    except DomainException as exc:
        raise fail(exc)

    display_order(dto, with_events=True)


@click.command("status")
@actor_options
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option(
    "--to",
    "status",
    required=True,
    type=click.Choice([s.value for s in OrderStatus]),
    help="Requested status.",
)
@click.option("--note", default=None, help="Description recorded in the order history.")
def order_status(user_id: str, role: str, order_id: int, status: str, note: str | None) -> None:
    """Move an order to a new status."""
    handler = UpdateOrderStatusHandler(
        order_repo=order_repository(),
        reservations=reservation_service(),
        notifications=notification_dispatcher(),
    )

    try:
        dto = handler.handle(actor(user_id, role), order_id, status, note)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Order #{dto.id} is now {dto.status}.")


@click.command("cancel")
@actor_options
@click.option("--id", "order_id", required=True, type=int, help="Order ID to cancel.")
@click.option("--reason", default=None, help="Cancellation reason.")
def order_cancel(user_id: str, role: str, order_id: int, reason: str | None) -> None:
    """Cancel an order (releases held inventory)."""
    handler = CancelOrderHandler(
        order_repo=order_repository(),
        reservations=reservation_service(),
        notifications=notification_dispatcher(),
    )

    try:
        handler.handle(actor(user_id, role), order_id, reason)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Order #{order_id} cancelled.")
