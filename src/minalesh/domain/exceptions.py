"""Domain-level exceptions.

Every business rule violation is a subclass of DomainException and carries
an ``ErrorKind`` so callers (CLI, request handlers) can branch on the error
category without inspecting message text.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    VALIDATION = "validation"
    INSUFFICIENT_STOCK = "insufficient_stock"
    INVALID_TRANSITION = "invalid_transition"
    INVALID_STATE = "invalid_state"
    GATEWAY = "gateway"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.INVALID_TRANSITION: 400,
    ErrorKind.INVALID_STATE: 409,
    ErrorKind.GATEWAY: 502,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.FORBIDDEN: 403,
}


class DomainException(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind = ErrorKind.VALIDATION


class ValidationError(DomainException):
    """Malformed or missing input, or a business rule was violated."""

    kind = ErrorKind.VALIDATION


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    kind = ErrorKind.NOT_FOUND


class ProductNotFoundError(EntityNotFoundError):
    """One or more cart products (or variants) are not in the catalog."""

    def __init__(self, missing_ids: list[str]) -> None:
        self.missing_ids = list(missing_ids)
        super().__init__(f"Products not found: {', '.join(self.missing_ids)}")


class InsufficientStockError(DomainException):
    """A single reservation could not be satisfied."""

    kind = ErrorKind.INSUFFICIENT_STOCK

    def __init__(
        self,
        product_id: str,
        variant_id: str | None,
        requested: int,
        available: int,
    ) -> None:
        self.product_id = product_id
        self.variant_id = variant_id
        self.requested = requested
        self.available = available
        target = product_id if variant_id is None else f"{product_id}/{variant_id}"
        super().__init__(
            f"Insufficient stock for {target}: "
            f"{available} available, {requested} requested"
        )


class InsufficientInventoryError(InsufficientStockError):
    """A cart line could not be reserved; earlier holds were rolled back."""

    def __init__(self, item_index: int, cause: InsufficientStockError) -> None:
        self.item_index = item_index
        super().__init__(
            cause.product_id, cause.variant_id, cause.requested, cause.available
        )


class InvalidTransitionError(DomainException):
    """The requested order status is not reachable from the current one."""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(self, current: str, requested: str, message: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(message)


class InvalidStateError(DomainException):
    """An entity is not in the state the operation requires."""

    kind = ErrorKind.INVALID_STATE


class GatewayError(DomainException):
    """The external payment provider failed or declined."""

    kind = ErrorKind.GATEWAY


class ForbiddenError(DomainException):
    """The caller is neither the resource owner nor an admin."""

    kind = ErrorKind.FORBIDDEN
