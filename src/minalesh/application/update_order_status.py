"""Application service: Update Order Status use case.

Every status change outside checkout and capture comes through here.
The Order aggregate enforces the transition table and stamps the
timestamp; this handler adds the ownership check, persistence and the
tracking notification.

``paid`` is reserved for payment capture, which is what consumes the
order's holds.  Moving to ``cancelled`` or ``refunded`` releases any
hold the order still has.
"""

from __future__ import annotations

import logging

from minalesh.application.auth import Actor, ensure_can_access
from minalesh.application.dto import OrderDTO
from minalesh.application.notifications import NotificationDispatcher
from minalesh.domain.exceptions import (
    EntityNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from minalesh.domain.model.clock import Clock, utc_now
from minalesh.domain.model.order_status import OrderStatus
from minalesh.domain.repository.order_repository import OrderRepository
from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)

_logger = logging.getLogger(__name__)

RELEASING_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})


class UpdateOrderStatusHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        reservations: InventoryReservationService,
        notifications: NotificationDispatcher,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repo = order_repo
        self._reservations = reservations
        self._notifications = notifications
        self._clock = clock

    def handle(
        self,
        actor: Actor,
        order_id: int,
        status: str,
        description: str | None = None,
    ) -> OrderDTO:
        requested = _parse_status(status)

        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        ensure_can_access(actor, order, "update")

        if requested == OrderStatus.PAID:
            raise InvalidTransitionError(
                order.status.value,
                requested.value,
                "Orders become paid only through payment capture",
            )

        previous = order.status
        order.transition_to(requested, actor.user_id, self._clock(), description)
        self._order_repo.save(order)

        released = 0
        if requested in RELEASING_STATUSES:
            released = self._reservations.release_for_order(order.id)  # type: ignore[arg-type]

        _logger.info(
            "Order status changed | order=%s from=%s to=%s by=%s released_holds=%s",
            order.order_number, previous.value, requested.value, actor.user_id, released,
        )
        self._notifications.status_reached(order.id, order.status)  # type: ignore[arg-type]
        return OrderDTO.from_order(order)


def _parse_status(raw: str) -> OrderStatus:
    try:
        return OrderStatus(raw.strip().lower())
    except ValueError:
        raise ValidationError(
            f"Unknown order status '{raw}'. Known statuses: "
            + ", ".join(s.value for s in OrderStatus)
        ) from None
