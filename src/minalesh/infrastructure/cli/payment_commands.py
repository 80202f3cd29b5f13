"""CLI commands for payment capture."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

import click

from minalesh.application.capture_payment import CapturePaymentHandler
from minalesh.application.show_capture_status import ShowCaptureStatusHandler
from minalesh.domain.exceptions import DomainException
from minalesh.infrastructure.bootstrap import (
    notification_dispatcher,
    order_repository,
    payment_gateway,
    reservation_repository,
    reservation_service,
    settings,
)
from minalesh.infrastructure.cli.common import actor, actor_options, fail


@click.command("capture")
@actor_options
@click.option("--order", "order_id", required=True, type=int, help="Order ID.")
@click.option("--amount", default=None, help="Amount to capture (default: order total).")
@click.option("--partial", is_flag=True, default=False, help="Not the final capture.")
def payment_capture(
    user_id: str, role: str, order_id: int, amount: str | None, partial: bool
) -> None:
    """Capture payment for a pending order."""
    try:
        requested = Decimal(amount) if amount is not None else None
    except InvalidOperation:
        raise click.BadParameter(f"Invalid amount '{amount}'.")

    handler = CapturePaymentHandler(
        order_repo=order_repository(),
        reservation_repo=reservation_repository(),
        reservations=reservation_service(),
        gateway=payment_gateway(),
        notifications=notification_dispatcher(),
        gateway_currency=settings().gateway_currency,
    )

    try:
        result = handler.handle(
            actor(user_id, role), order_id, amount=requested, final_capture=not partial
        )
    except DomainException as exc:
        raise fail(exc)

    click.echo(
        f"Order #{result.order_id} captured {result.captured_amount} "
        f"(capture={result.capture_id}, status={result.status}, "
        f"payment={result.payment_status})"
    )


@click.command("status")
@actor_options
@click.option("--order", "order_id", required=True, type=int, help="Order ID.")
def payment_status(user_id: str, role: str, order_id: int) -> None:
    """Show the capture status of an order."""
    handler = ShowCaptureStatusHandler(order_repo=order_repository())

    try:
        dto = handler.handle(actor(user_id, role), order_id)
    except DomainException as exc:
        raise fail(exc)

    click.echo(f"Order:       {dto.order_number} (#{dto.order_id})")
    click.echo(f"Total:       {dto.total_amount}")
    click.echo(f"Payment:     {dto.payment_status}")
    click.echo(f"Capturable:  {'yes' if dto.is_capturable else 'no'}")
    if dto.captured_amount is not None:
        click.echo(f"Captured:    {dto.captured_amount}")
    if dto.paid_at is not None:
        click.echo(f"Paid at:     {dto.paid_at}")
