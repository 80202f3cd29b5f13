"""Order status state machine.

For each status, the finite set of statuses reachable in one step.
Forward progression only, plus the cancellation / refund side branches
from non-terminal statuses.  ``delivered``, ``cancelled`` and
``refunded`` are terminal.
"""

from __future__ import annotations

from dataclasses import dataclass

from minalesh.domain.model.order_status import OrderStatus

S = OrderStatus

TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    S.PENDING: frozenset({S.PAID, S.CANCELLED}),
    S.PAID: frozenset({S.CONFIRMED, S.CANCELLED, S.REFUNDED}),
    S.CONFIRMED: frozenset({S.PROCESSING, S.PACKED, S.CANCELLED, S.REFUNDED}),
    S.PROCESSING: frozenset({S.PACKED, S.FULFILLED, S.CANCELLED, S.REFUNDED}),
    S.PACKED: frozenset({S.PICKED_UP, S.SHIPPED, S.CANCELLED, S.REFUNDED}),
    S.PICKED_UP: frozenset({S.IN_TRANSIT, S.SHIPPED, S.CANCELLED, S.REFUNDED}),
    S.IN_TRANSIT: frozenset({S.OUT_FOR_DELIVERY, S.SHIPPED, S.DELIVERED, S.REFUNDED}),
    S.OUT_FOR_DELIVERY: frozenset({S.DELIVERED, S.REFUNDED}),
    S.FULFILLED: frozenset({S.SHIPPED, S.CANCELLED, S.REFUNDED}),
    S.SHIPPED: frozenset({S.DELIVERED, S.REFUNDED}),
    S.DELIVERED: frozenset(),
    S.CANCELLED: frozenset(),
    S.REFUNDED: frozenset(),
}

# Timestamp attribute set on the order when it enters a status.
TIMESTAMP_FIELDS: dict[OrderStatus, str] = {
    S.PAID: "paid_at",
    S.CONFIRMED: "confirmed_at",
    S.PROCESSING: "processing_at",
    S.PACKED: "packed_at",
    S.PICKED_UP: "picked_up_at",
    S.IN_TRANSIT: "in_transit_at",
    S.OUT_FOR_DELIVERY: "out_for_delivery_at",
    S.FULFILLED: "fulfilled_at",
    S.SHIPPED: "shipped_at",
    S.DELIVERED: "delivered_at",
    S.CANCELLED: "cancelled_at",
    S.REFUNDED: "refunded_at",
}

# Statuses that trigger a customer tracking notification.
NOTIFICATION_STAGES: frozenset[OrderStatus] = frozenset({
    S.PENDING,
    S.CONFIRMED,
    S.PACKED,
    S.PICKED_UP,
    S.IN_TRANSIT,
    S.OUT_FOR_DELIVERY,
    S.DELIVERED,
})

TRACKING_PROGRESSION: tuple[OrderStatus, ...] = (
    S.PENDING,
    S.PAID,
    S.CONFIRMED,
    S.PROCESSING,
    S.PACKED,
    S.PICKED_UP,
    S.IN_TRANSIT,
    S.OUT_FOR_DELIVERY,
    S.DELIVERED,
)


@dataclass(frozen=True)
class TransitionCheck:
    valid: bool
    error: str | None = None


def valid_next_statuses(current: OrderStatus) -> list[OrderStatus]:
    return sorted(TRANSITIONS[current], key=lambda s: list(OrderStatus).index(s))


def is_terminal(status: OrderStatus) -> bool:
    return not TRANSITIONS[status]


def validate_transition(current: OrderStatus, requested: OrderStatus) -> TransitionCheck:
    if requested in TRANSITIONS[current]:
        return TransitionCheck(valid=True)

    allowed = ", ".join(s.value for s in valid_next_statuses(current))
    return TransitionCheck(
        valid=False,
        error=(
            f"Invalid status transition from '{current.value}' to "
            f"'{requested.value}'. Valid transitions: "
            f"{allowed or 'none (terminal state)'}"
        ),
    )


def notification_stage(status: OrderStatus) -> str | None:
    return status.value if status in NOTIFICATION_STAGES else None


def completed_statuses(current: OrderStatus) -> list[OrderStatus]:
    """Tracking steps already passed, for progress displays."""
    if current in TRACKING_PROGRESSION:
        return list(TRACKING_PROGRESSION[: TRACKING_PROGRESSION.index(current) + 1])
    if current == S.FULFILLED:
        return [S.PENDING, S.PAID, S.CONFIRMED, S.PROCESSING]
    if current == S.SHIPPED:
        return [S.PENDING, S.PAID, S.CONFIRMED, S.PROCESSING, S.PACKED, S.PICKED_UP]
    return [S.PENDING]
