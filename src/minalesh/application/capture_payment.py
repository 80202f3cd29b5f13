"""Application service: Capture Payment use case.

Finalizes a still-pending order once the gateway confirms funds.  All
preconditions are checked before money moves: ownership, payment not
already settled, ``pending -> paid`` allowed, amount within the order
total, and every linked hold still protecting its stock.

On a gateway decline the order stays pending and its holds stay
``held`` until they expire or the order is cancelled.  If the money
moved but a hold can no longer be committed, the capture is recorded,
the failure is logged and added to the order history, and the order
stays pending for review.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from minalesh.application.auth import Actor, ensure_can_access
from minalesh.application.dto import CaptureResultDTO
from minalesh.application.notifications import NotificationDispatcher
from minalesh.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    GatewayError,
    InvalidStateError,
    InvalidTransitionError,
    ValidationError,
)
from minalesh.domain.gateway.payment_gateway import PaymentGateway
from minalesh.domain.model.clock import Clock, utc_now
from minalesh.domain.model.order import Order
from minalesh.domain.model.order_status import OrderStatus, PaymentStatus
from minalesh.domain.model.value_objects import Money
from minalesh.domain.repository.order_repository import OrderRepository
from minalesh.domain.repository.reservation_repository import ReservationRepository
from minalesh.domain.service import order_state_machine
from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)

_logger = logging.getLogger(__name__)


class CapturePaymentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        reservation_repo: ReservationRepository,
        reservations: InventoryReservationService,
        gateway: PaymentGateway,
        notifications: NotificationDispatcher,
        gateway_currency: str | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repo = order_repo
        self._reservation_repo = reservation_repo
        self._reservations = reservations
        self._gateway = gateway
        self._notifications = notifications
        self._gateway_currency = gateway_currency
        self._clock = clock

    def handle(
        self,
        actor: Actor,
        order_id: int,
        amount: Decimal | None = None,
        final_capture: bool = True,
    ) -> CaptureResultDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        ensure_can_access(actor, order, "capture payments for")

        self._check_capturable(order)
        capture_amount = self._capture_amount(order, amount)
        self._check_holds(order)

        intent_id = order.payment_intent_id or self._reopen_intent(order)
        try:
            receipt = self._gateway.capture(
                intent_id, capture_amount.minor_units, final_capture
            )
        except GatewayError as exc:
            _logger.warning(
                "Capture declined; order stays pending | order=%s error=%s",
                order.order_number, exc,
            )
            order.record_event(
                "payment_capture_failed",
                f"Payment capture failed: {exc}",
                self._clock(),
                {"intent_id": intent_id, "amount": str(capture_amount.amount)},
            )
            self._order_repo.save(order)
            raise

        captured = Money(Decimal(receipt.captured_minor) / 100, order.currency).rounded()
        uncommitted = self._consume_holds(order)

        now = self._clock()
        order.mark_captured(receipt.capture_id, captured)
        if uncommitted:
            self._record_uncommitted(order, receipt.capture_id, captured, uncommitted, now)
            raise InvalidStateError(
                f"Payment for order {order.order_number} was captured but "
                f"{len(uncommitted)} inventory hold(s) could not be committed; "
                f"the order is kept pending for review"
            )

        order.transition_to(
            OrderStatus.PAID,
            actor.user_id,
            now,
            f"Payment captured: {captured}",
        )
        order.record_event(
            "payment_capture",
            f"Payment captured: {captured}",
            now,
            {
                "capture_id": receipt.capture_id,
                "captured_amount": str(captured.amount),
                "final_capture": final_capture,
            },
        )
        self._order_repo.save(order)
        self._notifications.status_reached(order.id, order.status)  # type: ignore[arg-type]

        _logger.info(
            "Payment captured | order=%s capture_id=%s amount=%s",
            order.order_number, receipt.capture_id, captured,
        )
        return CaptureResultDTO(
            order_id=order.id,  # type: ignore[arg-type]
            capture_id=receipt.capture_id,
            captured_amount=f"{captured.amount:.2f}",
            status=order.status.value,
            payment_status=order.payment_status.value,
        )

    # --- Preconditions --------------------------------------------------------

    @staticmethod
    def _check_capturable(order: Order) -> None:
        if order.payment_status == PaymentStatus.COMPLETED:
            raise InvalidStateError("Payment already captured")
        if order.payment_status == PaymentStatus.FAILED:
            raise InvalidStateError("Payment failed, cannot capture")
        check = order_state_machine.validate_transition(order.status, OrderStatus.PAID)
        if not check.valid:
            raise InvalidTransitionError(
                order.status.value, OrderStatus.PAID.value, check.error or ""
            )

    @staticmethod
    def _capture_amount(order: Order, amount: Decimal | None) -> Money:
        if amount is None:
            return order.total
        if amount <= 0:
            raise ValidationError("Capture amount must be greater than zero")
        requested = Money(Decimal(amount), order.currency).rounded()
        if requested > order.total:
            raise ValidationError(
                f"Capture amount ({requested}) exceeds order total ({order.total})"
            )
        return requested

    def _check_holds(self, order: Order) -> None:
        now = self._clock()
        for reservation_id in order.reservation_ids:
            reservation = self._reservation_repo.get_by_id(reservation_id)
            if reservation is None or not reservation.is_active(now):
                raise InvalidStateError(
                    f"Inventory hold {reservation_id} for order {order.order_number} "
                    f"has expired or was released; place the order again"
                )

    # --- Stock commit --------------------------------------------------------

    def _consume_holds(self, order: Order) -> dict[str, str]:
        """Consume every hold of the order; return the ones that failed."""
        failed: dict[str, str] = {}
        for reservation_id in order.reservation_ids:
            try:
                self._reservations.consume(reservation_id, order.id)  # type: ignore[arg-type]
            except DomainException as exc:
                failed[reservation_id] = str(exc)
        return failed

    def _record_uncommitted(
        self,
        order: Order,
        capture_id: str,
        captured: Money,
        failed: dict[str, str],
        now: datetime,
    ) -> None:
        order.record_event(
            "payment_capture",
            f"Payment captured: {captured}",
            now,
            {"capture_id": capture_id, "captured_amount": str(captured.amount)},
        )
        order.record_event(
            "inventory_commit_failed",
            "Payment captured but stock could not be committed; order needs review",
            now,
            {"failed_reservations": failed},
        )
        self._order_repo.save(order)
        _logger.error(
            "Payment captured but stock not committed | order=%s capture_id=%s failed=%s",
            order.order_number, capture_id, failed,
        )

    def _reopen_intent(self, order: Order) -> str:
        currency = self._gateway_currency or order.currency
        intent = self._gateway.create_intent(
            order.total.minor_units,
            currency,
            {"order_id": order.id, "order_number": order.order_number},
        )
        order.payment_intent_id = intent.id
        self._order_repo.save(order)
        return intent.id
