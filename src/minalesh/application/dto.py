"""Data Transfer Objects - plain containers that cross layer boundaries.

DTOs carry data between request handlers (CLI, HTTP) and the
application layer without exposing domain internals.  Amounts are
formatted strings with 2 decimals; timestamps are ISO-8601.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from minalesh.domain.model.order import Order, OrderEvent
from minalesh.domain.model.reservation import InventoryReservation
from minalesh.domain.service import order_state_machine


@dataclass(frozen=True)
class CartItemSpec:
    """Input: what the buyer asked for."""

    product_id: str
    quantity: int
    variant_id: str | None = None


@dataclass(frozen=True)
class OrderItemDTO:
    product_id: str
    variant_id: str | None
    product_name: str
    sku: str
    quantity: int
    unit_price: str
    line_total: str


@dataclass(frozen=True)
class OrderEventDTO:
    event_type: str
    status: str
    description: str
    created_at: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderDTO:
    id: int
    order_number: str
    user_id: str
    status: str
    payment_status: str
    currency: str
    subtotal: str
    discount_amount: str
    shipping_amount: str
    tax_amount: str
    total_amount: str
    created_at: str
    items: list[OrderItemDTO]
    timestamps: dict[str, str]
    events: list[OrderEventDTO]
    progress: list[str]

    @staticmethod
    def from_order(order: Order) -> OrderDTO:
        totals = order.totals
        return OrderDTO(
            id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            user_id=order.user_id,
            status=order.status.value,
            payment_status=order.payment_status.value,
            currency=order.currency,
            subtotal=f"{totals.subtotal.amount:.2f}",
            discount_amount=f"{totals.discount.amount:.2f}",
            shipping_amount=f"{totals.shipping.amount:.2f}",
            tax_amount=f"{totals.tax.amount:.2f}",
            total_amount=f"{totals.total.amount:.2f}",
            created_at=order.created_at.isoformat(),
            items=[
                OrderItemDTO(
                    product_id=item.product_id,
                    variant_id=item.variant_id,
                    product_name=item.product_name,
                    sku=item.sku,
                    quantity=item.quantity.value,
                    unit_price=f"{item.unit_price.amount:.2f}",
                    line_total=f"{item.line_total.amount:.2f}",
                )
                for item in order.items
            ],
            timestamps={k: v.isoformat() for k, v in order.timestamps.items()},
            events=[_event_dto(e) for e in order.events],
            progress=[s.value for s in order_state_machine.completed_statuses(order.status)],
        )


def _event_dto(event: OrderEvent) -> OrderEventDTO:
    return OrderEventDTO(
        event_type=event.event_type,
        status=event.status.value,
        description=event.description,
        created_at=event.created_at.isoformat(),
        metadata=dict(event.metadata),
    )


@dataclass(frozen=True)
class PaymentHandleDTO:
    intent_id: str
    client_handle: str | None
    currency: str


@dataclass(frozen=True)
class PaymentIntentDTO:
    """Output of checkout: the pending order and what holds it."""

    order: OrderDTO
    reservation_ids: list[str]
    payment: PaymentHandleDTO | None
    expires_at: str


@dataclass(frozen=True)
class CaptureResultDTO:
    order_id: int
    capture_id: str
    captured_amount: str
    status: str
    payment_status: str


@dataclass(frozen=True)
class CaptureStatusDTO:
    order_id: int
    order_number: str
    total_amount: str
    payment_status: str
    is_capturable: bool
    captured_amount: str | None
    paid_at: str | None


@dataclass(frozen=True)
class ReservationDTO:
    id: str
    product_id: str
    variant_id: str | None
    quantity: int
    status: str
    order_id: int | None
    expires_at: str

    @staticmethod
    def from_reservation(reservation: InventoryReservation) -> ReservationDTO:
        return ReservationDTO(
            id=reservation.id,
            product_id=reservation.product_id,
            variant_id=reservation.variant_id,
            quantity=reservation.quantity,
            status=reservation.status.value,
            order_id=reservation.order_id,
            expires_at=reservation.expires_at.isoformat(),
        )
