"""Offline payment gateway for cash-on-delivery and operator captures.

Intents and captures are recorded locally and always succeed, which is
what the CLI needs.  A card or mobile-money provider adapter implements
the same port and raises ``GatewayError`` on declines.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any

from minalesh.domain.exceptions import GatewayError
from minalesh.domain.gateway.payment_gateway import (
    CaptureReceipt,
    PaymentGateway,
    PaymentIntent,
)

_logger = logging.getLogger(__name__)


class ManualPaymentGateway(PaymentGateway):

    def __init__(self) -> None:
        self._intents: dict[str, int] = {}

    def create_intent(
        self, amount_minor: int, currency: str, metadata: dict[str, Any]
    ) -> PaymentIntent:
        if amount_minor <= 0:
            raise GatewayError("Payment amount must be greater than zero")
        intent_id = f"MANUAL-{uuid.uuid4().hex[:12].upper()}"
        self._intents[intent_id] = amount_minor
        _logger.info(
            "Manual intent opened | intent=%s amount_minor=%s currency=%s order=%s",
            intent_id, amount_minor, currency, metadata.get("order_number"),
        )
        return PaymentIntent(id=intent_id, client_handle=None, currency=currency)

    def capture(
        self, intent_id: str, amount_minor: int | None, final: bool
    ) -> CaptureReceipt:
        if not intent_id.startswith("MANUAL-"):
            raise GatewayError(f"Unknown payment intent '{intent_id}'")
        # Intents opened by an earlier process are not in memory; trust the caller's amount.
        authorized = self._intents.get(intent_id, amount_minor)
        if authorized is None:
            raise GatewayError(f"Capture amount required for intent '{intent_id}'")
        captured = authorized if amount_minor is None else amount_minor
        if captured > authorized:
            raise GatewayError("Capture amount exceeds the authorized amount")
        if final:
            self._intents.pop(intent_id, None)
        return CaptureReceipt(
            capture_id=f"CAP-{uuid.uuid4().hex[:12].upper()}",
            captured_minor=captured,
        )
