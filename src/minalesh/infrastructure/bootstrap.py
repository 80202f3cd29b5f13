"""Composition root - wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.  Settings are read on
every call so the data directory can be switched per invocation.
"""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from minalesh.application.notifications import NotificationDispatcher
from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)
from minalesh.domain.service.pricing_service import PricingCalculator
from minalesh.infrastructure.config import Settings
from minalesh.infrastructure.gateway.manual_payment_gateway import ManualPaymentGateway
from minalesh.infrastructure.notification.logging_notification_sender import (
    LoggingNotificationSender,
)
from minalesh.infrastructure.persistence.json_coupon_repository import (
    JsonCouponRepository,
)
from minalesh.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from minalesh.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from minalesh.infrastructure.persistence.json_rate_repository import (
    JsonShippingRateRepository,
    JsonTaxRateRepository,
)
from minalesh.infrastructure.persistence.json_reservation_repository import (
    JsonReservationRepository,
)

_executor_lock = threading.Lock()
_executor: ThreadPoolExecutor | None = None


def settings() -> Settings:
    return Settings.from_env()


# --- Repositories -------------------------------------------------------------


def product_repository() -> JsonProductRepository:
    return JsonProductRepository(settings().data_dir / "products.json")


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(settings().data_dir / "orders.json")


def reservation_repository() -> JsonReservationRepository:
    return JsonReservationRepository(settings().data_dir / "reservations.json")


def coupon_repository() -> JsonCouponRepository:
    return JsonCouponRepository(settings().data_dir / "coupons.json")


def shipping_rate_repository() -> JsonShippingRateRepository:
    return JsonShippingRateRepository(settings().data_dir / "shipping_rates.json")


def tax_rate_repository() -> JsonTaxRateRepository:
    return JsonTaxRateRepository(settings().data_dir / "tax_rates.json")


# --- Services and adapters ----------------------------------------------------


def reservation_service() -> InventoryReservationService:
    return InventoryReservationService(
        reservation_repo=reservation_repository(),
        product_repo=product_repository(),
        hold_minutes=settings().reservation_hold_minutes,
    )


def pricing_calculator() -> PricingCalculator:
    config = settings()
    return PricingCalculator(
        coupon_repo=coupon_repository(),
        shipping_repo=shipping_rate_repository(),
        tax_repo=tax_rate_repository(),
        default_tax_rate=config.default_tax_rate,
        default_country=config.tax_country,
    )


def payment_gateway() -> ManualPaymentGateway:
    return ManualPaymentGateway()


def notification_dispatcher() -> NotificationDispatcher:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=settings().notify_workers,
                thread_name_prefix="minalesh-notify",
            )
    return NotificationDispatcher(
        sender=LoggingNotificationSender(order_repository()),
        executor=_executor,
    )
