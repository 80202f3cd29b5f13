"""Order aggregate - the core of the domain.

The Order is an aggregate root that owns its line items and its audit
trail.  Status only ever changes through ``transition_to()``, which
consults the state machine, stamps the status timestamp and appends
an OrderEvent in one step.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from minalesh.domain.exceptions import (
    InvalidStateError,
    InvalidTransitionError,
    ValidationError,
)
from minalesh.domain.model.order_status import OrderStatus, PaymentStatus
from minalesh.domain.model.value_objects import Money, Quantity
from minalesh.domain.service import order_state_machine


@dataclass(frozen=True)
class OrderItem:
    """Snapshot of a cart line at order-creation time.  Never mutated."""

    product_id: str
    variant_id: str | None
    vendor_id: str
    product_name: str
    sku: str
    quantity: Quantity
    unit_price: Money  # locked at order-creation time

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class OrderEvent:
    event_type: str
    status: OrderStatus
    description: str
    created_at: datetime
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderTotals:
    """Invariant: total = subtotal - discount + shipping + tax."""

    subtotal: Money
    discount: Money
    shipping: Money
    tax: Money
    total: Money

    def __post_init__(self) -> None:
        expected = self.subtotal - self.discount + self.shipping + self.tax
        if expected != self.total:
            raise ValidationError(
                f"Order total {self.total} does not match its components ({expected})"
            )


@dataclass
class Order:
    """Aggregate root for customer orders.

    Use ``Order.place()`` for new orders.  The ``__init__`` is simple so
    the repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    user_id: str
    order_number: str
    items: list[OrderItem]
    totals: OrderTotals
    created_at: datetime
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    shipping_address: dict[str, Any] | None = None
    billing_address: dict[str, Any] | None = None
    coupon_id: str | None = None
    shipping_method_id: str | None = None
    shipping_zone_id: str | None = None
    payment_intent_id: str | None = None
    capture_id: str | None = None
    captured_amount: Money | None = None
    reservation_ids: list[str] = field(default_factory=list)
    timestamps: dict[str, datetime] = field(default_factory=dict)
    events: list[OrderEvent] = field(default_factory=list)

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def place(
        user_id: str,
        items: list[OrderItem],
        totals: OrderTotals,
        now: datetime,
        reservation_ids: list[str] | None = None,
        shipping_address: dict[str, Any] | None = None,
        billing_address: dict[str, Any] | None = None,
        coupon_id: str | None = None,
        shipping_method_id: str | None = None,
        shipping_zone_id: str | None = None,
    ) -> Order:
        if not user_id:
            raise ValidationError("User ID is required")
        if not items:
            raise ValidationError("Order must contain at least one item")

        order = Order(
            id=None,
            user_id=user_id,
            order_number=f"MIN-{now:%Y%m%d}-{uuid.uuid4().hex[:8].upper()}",
            items=list(items),
            totals=totals,
            created_at=now,
            shipping_address=shipping_address,
            billing_address=billing_address,
            coupon_id=coupon_id,
            shipping_method_id=shipping_method_id,
            shipping_zone_id=shipping_zone_id,
            reservation_ids=list(reservation_ids or []),
        )
        order.record_event(
            "order_created",
            f"Order {order.order_number} placed",
            now,
            {"total": str(totals.total.amount), "currency": totals.total.currency},
        )
        return order

    # --- State transitions ----------------------------------------------------

    def transition_to(
        self,
        requested: OrderStatus,
        actor_id: str,
        now: datetime,
        description: str | None = None,
    ) -> OrderEvent:
        """Apply a status change allowed by the state machine.

        Sets the status timestamp (at most once) and appends a
        ``status_changed`` event recording the previous status and actor.
        """
        check = order_state_machine.validate_transition(self.status, requested)
        if not check.valid:
            raise InvalidTransitionError(self.status.value, requested.value, check.error or "")

        stamp = order_state_machine.TIMESTAMP_FIELDS.get(requested)
        if stamp is not None:
            if stamp in self.timestamps:
                raise InvalidStateError(
                    f"Order {self.order_number} already has {stamp} set"
                )
            self.timestamps[stamp] = now

        previous = self.status
        self.status = requested
        return self.record_event(
            "status_changed",
            description or f"Order status changed to {requested.value}",
            now,
            {
                "previous_status": previous.value,
                "new_status": requested.value,
                "changed_by": actor_id,
            },
        )

    def record_event(
        self,
        event_type: str,
        description: str,
        now: datetime,
        metadata: dict[str, Any] | None = None,
    ) -> OrderEvent:
        event = OrderEvent(
            event_type=event_type,
            status=self.status,
            description=description,
            created_at=now,
            metadata=dict(metadata or {}),
        )
        self.events.append(event)
        return event

    def mark_captured(self, capture_id: str, amount: Money) -> None:
        if self.payment_status != PaymentStatus.PENDING:
            raise InvalidStateError(
                f"Payment for order {self.order_number} is {self.payment_status.value}"
            )
        self.payment_status = PaymentStatus.COMPLETED
        self.capture_id = capture_id
        self.captured_amount = amount

    # --- Computed properties --------------------------------------------------

    @property
    def currency(self) -> str:
        return self.totals.total.currency

    @property
    def total(self) -> Money:
        return self.totals.total

    def timestamp_for(self, status: OrderStatus) -> datetime | None:
        stamp = order_state_machine.TIMESTAMP_FIELDS.get(status)
        if stamp is None:
            return None
        return self.timestamps.get(stamp)

    @property
    def paid_at(self) -> datetime | None:
        return self.timestamp_for(OrderStatus.PAID)

    def is_owned_by(self, user_id: str) -> bool:
        return self.user_id == user_id
