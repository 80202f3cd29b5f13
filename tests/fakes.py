"""In-memory fakes for testing.

These implement the same abstract interfaces as the JSON repositories
and adapters but keep everything in dicts.  No file I/O, no network.
"""

from __future__ import annotations

import copy
import threading
from collections import defaultdict
from concurrent.futures import Executor, Future
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any, Iterator

from minalesh.domain.exceptions import GatewayError
from minalesh.domain.gateway.notification_sender import NotificationSender
from minalesh.domain.gateway.payment_gateway import (
    CaptureReceipt,
    PaymentGateway,
    PaymentIntent,
)
from minalesh.domain.model.coupon import Coupon
from minalesh.domain.model.order import Order
from minalesh.domain.model.product import Product
from minalesh.domain.model.rates import ShippingRate, TaxRate
from minalesh.domain.model.reservation import InventoryReservation
from minalesh.domain.repository.coupon_repository import CouponRepository
from minalesh.domain.repository.order_repository import OrderRepository
from minalesh.domain.repository.product_repository import ProductRepository
from minalesh.domain.repository.rate_repository import (
    ShippingRateRepository,
    TaxRateRepository,
)
from minalesh.domain.repository.reservation_repository import ReservationRepository


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._store: dict[int, Order] = {}
        self._next_id = 1

    def get_by_id(self, order_id: int) -> Order | None:
        return self._store.get(order_id)

    def save(self, order: Order) -> None:
        if order.id is None:
            order.id = self._next_id
            self._next_id += 1
        self._store[order.id] = order

    def all(self) -> list[Order]:
        return list(self._store.values())


class FakeProductRepository(ProductRepository):

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        for p in products or []:
            self._store[p.id] = p

    def get_by_id(self, product_id: str) -> Product | None:
        return self._store.get(product_id)

    def list_all(self) -> list[Product]:
        return list(self._store.values())

    def save(self, product: Product) -> None:
        self._store[product.id] = product


class FakeReservationRepository(ReservationRepository):
    """Stores copies so callers only see what they explicitly saved."""

    def __init__(self) -> None:
        self._store: dict[str, InventoryReservation] = {}
        self._locks: dict[str, threading.Lock] = defaultdict(threading.Lock)
        self._guard = threading.Lock()

    @contextmanager
    def lock_stock(self, product_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks[product_id]
        with lock:
            yield

    def get_by_id(self, reservation_id: str) -> InventoryReservation | None:
        with self._guard:
            found = self._store.get(reservation_id)
            return copy.deepcopy(found) if found is not None else None

    def list_held(self, product_id: str, variant_id: str | None) -> list[InventoryReservation]:
        with self._guard:
            return [
                copy.deepcopy(r)
                for r in self._store.values()
                if r.is_held and r.product_id == product_id and r.variant_id == variant_id
            ]

    def list_expired(self, now: datetime) -> list[InventoryReservation]:
        with self._guard:
            return [
                copy.deepcopy(r)
                for r in self._store.values()
                if r.is_held and r.is_expired(now)
            ]

    def list_by_order(self, order_id: int) -> list[InventoryReservation]:
        with self._guard:
            return [copy.deepcopy(r) for r in self._store.values() if r.order_id == order_id]

    def save(self, reservation: InventoryReservation) -> None:
        with self._guard:
            self._store[reservation.id] = copy.deepcopy(reservation)

    def all(self) -> list[InventoryReservation]:
        with self._guard:
            return [copy.deepcopy(r) for r in self._store.values()]


class FakeCouponRepository(CouponRepository):

    def __init__(self, coupons: list[Coupon] | None = None) -> None:
        self._store: dict[str, Coupon] = {c.code: c for c in coupons or []}

    def get_by_code(self, code: str) -> Coupon | None:
        return self._store.get(code.strip().upper())

    def list_all(self) -> list[Coupon]:
        return list(self._store.values())

    def save(self, coupon: Coupon) -> None:
        self._store[coupon.code] = coupon


class FakeShippingRateRepository(ShippingRateRepository):

    def __init__(self, rates: list[ShippingRate] | None = None) -> None:
        self._rates = list(rates or [])

    def find(self, method_id: str, zone_id: str | None = None) -> ShippingRate | None:
        for rate in self._rates:
            if rate.method_id == method_id and (zone_id is None or rate.zone_id == zone_id):
                return rate
        return None

    def save(self, rate: ShippingRate) -> None:
        self._rates = [r for r in self._rates if r.id != rate.id] + [rate]


class FakeTaxRateRepository(TaxRateRepository):

    def __init__(self, rates: list[TaxRate] | None = None) -> None:
        self._rates = list(rates or [])

    def list_active(self, country: str) -> list[TaxRate]:
        return [r for r in self._rates if r.country == country and r.is_active]

    def save(self, rate: TaxRate) -> None:
        self._rates = [r for r in self._rates if r.id != rate.id] + [rate]


class FakePaymentGateway(PaymentGateway):

    def __init__(self, fail_intent: bool = False, fail_capture: bool = False) -> None:
        self.fail_intent = fail_intent
        self.fail_capture = fail_capture
        self.intents: dict[str, tuple[int, str]] = {}
        self.captures: list[tuple[str, int | None, bool]] = []

    def create_intent(
        self, amount_minor: int, currency: str, metadata: dict[str, Any]
    ) -> PaymentIntent:
        if self.fail_intent:
            raise GatewayError("Gateway unavailable")
        intent_id = f"pi_{len(self.intents) + 1}"
        self.intents[intent_id] = (amount_minor, currency)
        return PaymentIntent(id=intent_id, client_handle=f"{intent_id}_secret", currency=currency)

    def capture(
        self, intent_id: str, amount_minor: int | None, final: bool
    ) -> CaptureReceipt:
        if self.fail_capture:
            raise GatewayError("Card declined")
        self.captures.append((intent_id, amount_minor, final))
        authorized, _ = self.intents[intent_id]
        return CaptureReceipt(
            capture_id=f"cap_{len(self.captures)}",
            captured_minor=authorized if amount_minor is None else amount_minor,
        )


class RecordingNotificationSender(NotificationSender):

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[int, str]] = []

    def notify(self, order_id: int, stage: str) -> None:
        if self.fail:
            raise ConnectionError("SMS provider unreachable")
        self.sent.append((order_id, stage))


class ImmediateExecutor(Executor):
    """Runs submitted work inline so tests can assert on its effects."""

    def submit(self, fn, /, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as exc:
            future.set_exception(exc)
        return future


class InMemoryMarketplace:
    """Test composition root: every handler wired to the fakes above."""

    def __init__(
        self,
        products: list[Product],
        coupons: list[Coupon] | None = None,
        shipping_rates: list[ShippingRate] | None = None,
        tax_rates: list[TaxRate] | None = None,
        gateway: FakePaymentGateway | None = None,
        sender: RecordingNotificationSender | None = None,
    ) -> None:
        from minalesh.application.cancel_order import CancelOrderHandler
        from minalesh.application.capture_payment import CapturePaymentHandler
        from minalesh.application.create_payment_intent import CreatePaymentIntentHandler
        from minalesh.application.notifications import NotificationDispatcher
        from minalesh.application.show_capture_status import ShowCaptureStatusHandler
        from minalesh.application.update_order_status import UpdateOrderStatusHandler
        from minalesh.domain.service.inventory_reservation_service import (
            InventoryReservationService,
        )
        from minalesh.domain.service.pricing_service import PricingCalculator

        self.clock = FakeClock()
        self.orders = FakeOrderRepository()
        self.products = FakeProductRepository(products)
        self.reservation_repo = FakeReservationRepository()
        self.gateway = gateway or FakePaymentGateway()
        self.sender = sender or RecordingNotificationSender()
        self.reservations = InventoryReservationService(
            self.reservation_repo, self.products, clock=self.clock
        )
        self.pricing = PricingCalculator(
            FakeCouponRepository(coupons),
            FakeShippingRateRepository(shipping_rates),
            FakeTaxRateRepository(tax_rates),
            clock=self.clock,
        )
        self.notifications = NotificationDispatcher(self.sender, ImmediateExecutor())

        self.create_intent = CreatePaymentIntentHandler(
            self.orders, self.products, self.reservations, self.pricing,
            self.gateway, self.notifications, clock=self.clock,
        )
        self.capture = CapturePaymentHandler(
            self.orders, self.reservation_repo, self.reservations,
            self.gateway, self.notifications, clock=self.clock,
        )
        self.capture_status = ShowCaptureStatusHandler(self.orders)
        self.update_status = UpdateOrderStatusHandler(
            self.orders, self.reservations, self.notifications, clock=self.clock
        )
        self.cancel = CancelOrderHandler(
            self.orders, self.reservations, self.notifications, clock=self.clock
        )
