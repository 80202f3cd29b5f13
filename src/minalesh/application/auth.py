"""The authenticated caller, as handed over by the auth collaborator.

Token verification happens outside the core; handlers only receive
``Actor(user_id, role)`` and apply ownership checks.
"""

from __future__ import annotations

from dataclasses import dataclass

from minalesh.domain.exceptions import ForbiddenError
from minalesh.domain.model.order import Order

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class Actor:
    user_id: str
    role: str = "customer"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def ensure_can_access(actor: Actor, order: Order, action: str) -> None:
    if actor.is_admin or order.is_owned_by(actor.user_id):
        return
    raise ForbiddenError(f"Forbidden - you can only {action} your own orders")
