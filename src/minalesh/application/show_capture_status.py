"""Application service: Show Capture Status use case (query)."""

from __future__ import annotations

from minalesh.application.auth import Actor, ensure_can_access
from minalesh.application.dto import CaptureStatusDTO
from minalesh.domain.exceptions import EntityNotFoundError
from minalesh.domain.model.order_status import PaymentStatus
from minalesh.domain.repository.order_repository import OrderRepository


class ShowCaptureStatusHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, actor: Actor, order_id: int) -> CaptureStatusDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        ensure_can_access(actor, order, "view payment status for")

        return CaptureStatusDTO(
            order_id=order.id,  # type: ignore[arg-type]
            order_number=order.order_number,
            total_amount=f"{order.total.amount:.2f}",
            payment_status=order.payment_status.value,
            is_capturable=order.payment_status == PaymentStatus.PENDING,
            captured_amount=(
                f"{order.captured_amount.amount:.2f}"
                if order.captured_amount is not None
                else None
            ),
            paid_at=order.paid_at.isoformat() if order.paid_at else None,
        )
