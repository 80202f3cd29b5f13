"""Port for customer tracking notifications (SMS, e-mail, push)."""

from __future__ import annotations

from abc import ABC, abstractmethod


class NotificationSender(ABC):

    @abstractmethod
    def notify(self, order_id: int, stage: str) -> None:
        """Tell the customer their order reached ``stage``.  May raise."""
