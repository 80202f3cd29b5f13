"""Application service: Show Order use case (query)."""

from __future__ import annotations

from minalesh.application.auth import Actor, ensure_can_access
from minalesh.application.dto import OrderDTO
from minalesh.domain.exceptions import EntityNotFoundError
from minalesh.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, actor: Actor, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        ensure_can_access(actor, order, "view")
        return OrderDTO.from_order(order)
