"""Detached, best-effort tracking notifications.

``NotificationDispatcher.dispatch`` hands the send to an executor and
returns immediately.  Whatever the sender raises is logged from the
future's done-callback; it never reaches the order operation that
triggered it.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future

from minalesh.domain.gateway.notification_sender import NotificationSender
from minalesh.domain.model.order_status import OrderStatus
from minalesh.domain.service import order_state_machine

_logger = logging.getLogger(__name__)


class NotificationDispatcher:

    def __init__(self, sender: NotificationSender, executor: Executor) -> None:
        self._sender = sender
        self._executor = executor

    def status_reached(self, order_id: int, status: OrderStatus) -> Future | None:
        """Notify if ``status`` is a customer-facing tracking stage."""
        stage = order_state_machine.notification_stage(status)
        if stage is None:
            return None
        return self.dispatch(order_id, stage)

    def dispatch(self, order_id: int, stage: str) -> Future | None:
        try:
            future = self._executor.submit(self._sender.notify, order_id, stage)
        except RuntimeError:
            # executor already shut down
            _logger.exception(
                "Could not schedule notification | order_id=%s stage=%s", order_id, stage
            )
            return None

        def _log_failure(done: Future) -> None:
            if done.cancelled():
                return
            exc = done.exception()
            if exc is not None:
                _logger.error(
                    "Tracking notification failed | order_id=%s stage=%s error=%s",
                    order_id, stage, exc,
                )

        future.add_done_callback(_log_failure)
        return future
