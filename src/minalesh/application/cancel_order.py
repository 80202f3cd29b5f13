"""Application service: Cancel Order use case.

Cancels through the state machine, then releases any hold the order
still hopes to consume.  Consumed holds stay consumed: stock that was
sold is not put back by a cancellation.
"""

from __future__ import annotations

import logging

from minalesh.application.auth import Actor, ensure_can_access
from minalesh.application.dto import OrderDTO
from minalesh.application.notifications import NotificationDispatcher
from minalesh.domain.exceptions import EntityNotFoundError
from minalesh.domain.model.clock import Clock, utc_now
from minalesh.domain.model.order_status import OrderStatus
from minalesh.domain.repository.order_repository import OrderRepository
from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)

_logger = logging.getLogger(__name__)


class CancelOrderHandler:

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

    def handle(self, actor: Actor, order_id: int, reason: str | None = None) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        ensure_can_access(actor, order, "cancel")

        order.transition_to(
            OrderStatus.CANCELLED,
            actor.user_id,
            self._clock(),
            f"Order cancelled: {reason}" if reason else "Order cancelled",
        )
        self._order_repo.save(order)
        released = self._reservations.release_for_order(order.id)  # type: ignore[arg-type]

        _logger.info(
            "Order cancelled | order=%s by=%s released_holds=%s",
            order.order_number, actor.user_id, released,
        )
        self._notifications.status_reached(order.id, order.status)  # type: ignore[arg-type]
        return OrderDTO.from_order(order)
