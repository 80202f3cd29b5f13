"""Notification sender that writes the customer message to the log.

SMS / e-mail delivery is someone else's job; this adapter renders the
stage message so the tracking flow is observable end to end.
"""

from __future__ import annotations

import logging

from minalesh.domain.gateway.notification_sender import NotificationSender
from minalesh.domain.repository.order_repository import OrderRepository

_logger = logging.getLogger(__name__)

STAGE_MESSAGES = {
    "pending": "Your order {order_number} has been placed successfully. "
    "We'll notify you when it's confirmed.",
    "confirmed": "Great news! Your order {order_number} has been confirmed "
    "by the vendor and is being prepared.",
    "packed": "Your order {order_number} has been packed and is ready for "
    "pickup by our delivery partner.",
    "picked_up": "Your order {order_number} has been picked up by our courier.",
    "in_transit": "Your order {order_number} is on the way!",
    "out_for_delivery": "Your order {order_number} is out for delivery!",
    "delivered": "Your order {order_number} has been delivered! "
    "Thank you for shopping with us.",
}


def render_message(stage: str, order_number: str) -> str | None:
    template = STAGE_MESSAGES.get(stage)
    if template is None:
        return None
    return "Minalesh: " + template.format(order_number=order_number)


class LoggingNotificationSender(NotificationSender):

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def notify(self, order_id: int, stage: str) -> None:
        order = self._order_repo.get_by_id(order_id)
        order_number = order.order_number if order is not None else f"#{order_id}"
        message = render_message(stage, order_number)
        if message is None:
            _logger.warning(
                "No message configured for stage | stage=%s order=%s", stage, order_number
            )
            return
        _logger.info("Notification | order=%s stage=%s message=%s", order_number, stage, message)
