"""Port for the external payment provider.

The core only needs two calls: open an intent for an amount and capture
against it later.  Implementations raise ``GatewayError`` on any
provider failure or decline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class PaymentIntent:
    id: str
    client_handle: str | None
    currency: str


@dataclass(frozen=True)
class CaptureReceipt:
    capture_id: str
    captured_minor: int


class PaymentGateway(ABC):

    @abstractmethod
    def create_intent(
        self, amount_minor: int, currency: str, metadata: dict[str, Any]
    ) -> PaymentIntent:
        """Open a payment intent for ``amount_minor`` smallest currency units."""

    @abstractmethod
    def capture(
        self, intent_id: str, amount_minor: int | None, final: bool
    ) -> CaptureReceipt:
        """Capture funds against an intent (full amount when None)."""
