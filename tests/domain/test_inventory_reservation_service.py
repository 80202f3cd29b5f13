"""Unit tests for the InventoryReservationService domain service."""

import threading

import pytest

from minalesh.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    InvalidStateError,
    ProductNotFoundError,
    ValidationError,
)
from minalesh.domain.model.product import Product, ProductVariant
from minalesh.domain.model.reservation import ReservationStatus
from minalesh.domain.model.value_objects import Money
from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)
from tests.fakes import FakeClock, FakeProductRepository, FakeReservationRepository


def _setup(stock: int = 10, variant_stock: int = 3):
    product = Product(
        id="p1",
        name="Jebena",
        sku="JEB-1",
        vendor_id="v1",
        price=Money.of("500"),
        stock_quantity=stock,
        variants={"red": ProductVariant(id="red", name="Red", sku="JEB-1-R", stock_quantity=variant_stock)},
    )
    products = FakeProductRepository([product])
    reservations = FakeReservationRepository()
    clock = FakeClock()
    svc = InventoryReservationService(reservations, products, hold_minutes=15, clock=clock)
    return svc, products, reservations, clock


class TestReserve:

    def test_reserve_holds_stock(self):
        svc, _, reservations, clock = _setup(stock=10)

        r = svc.reserve("p1", None, 4, "u1")

        assert r.status == ReservationStatus.HELD
        assert r.expires_at == clock.now + svc.hold_window
        assert reservations.get_by_id(r.id) is not None
        assert svc.available_stock("p1") == 6
        assert svc.held_quantity("p1") == 4

    def test_insufficient_stock_reports_available(self):
        svc, _, _, _ = _setup(stock=5)
        svc.reserve("p1", None, 3, "u1")

        with pytest.raises(InsufficientStockError) as exc_info:
            svc.reserve("p1", None, 3, "u2")

        assert exc_info.value.available == 2
        assert exc_info.value.requested == 3

    def test_variant_stock_is_separate(self):
        svc, _, _, _ = _setup(stock=10, variant_stock=3)

        svc.reserve("p1", "red", 3, "u1")

        assert svc.available_stock("p1", "red") == 0
        assert svc.available_stock("p1") == 10
        with pytest.raises(InsufficientStockError):
            svc.reserve("p1", "red", 1, "u2")

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_non_positive_quantity_rejected(self, quantity):
        svc, _, _, _ = _setup()
        with pytest.raises(ValidationError, match="Quantity must be positive"):
            svc.reserve("p1", None, quantity, "u1")

    def test_unknown_product_or_variant(self):
        svc, _, _, _ = _setup()
        with pytest.raises(ProductNotFoundError) as exc_info:
            svc.reserve("nope", None, 1, "u1")
        assert exc_info.value.missing_ids == ["nope"]

        with pytest.raises(ProductNotFoundError, match="p1/blue"):
            svc.reserve("p1", "blue", 1, "u1")

    def test_expired_unswept_hold_does_not_count(self):
        svc, _, reservations, clock = _setup(stock=1)
        stale = svc.reserve("p1", None, 1, "u1")

        clock.advance(minutes=16)
        fresh = svc.reserve("p1", None, 1, "u2")

        assert fresh.status == ReservationStatus.HELD
        assert reservations.get_by_id(stale.id).status == ReservationStatus.HELD


class TestConcurrentReserve:

    def test_last_unit_goes_to_exactly_one_buyer(self):
        svc, _, reservations, _ = _setup(stock=1)
        outcomes: list[str] = []
        start = threading.Barrier(8)

        def buy(user: str) -> None:
            start.wait()
            try:
                svc.reserve("p1", None, 1, user)
                outcomes.append("won")
            except InsufficientStockError:
                outcomes.append("lost")

        threads = [threading.Thread(target=buy, args=(f"u{i}",)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert outcomes.count("won") == 1
        assert outcomes.count("lost") == 7
        assert len([r for r in reservations.all() if r.is_held]) == 1

    def test_held_total_never_exceeds_stock(self):
        svc, _, reservations, _ = _setup(stock=10)

        def buy(user: str) -> None:
            for _ in range(5):
                try:
                    svc.reserve("p1", None, 1, user)
                except InsufficientStockError:
                    pass

        threads = [threading.Thread(target=buy, args=(f"u{i}",)) for i in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(r.quantity for r in reservations.all() if r.is_held) == 10


class TestRelease:

    def test_release_frees_stock(self):
        svc, _, _, _ = _setup(stock=2)
        r = svc.reserve("p1", None, 2, "u1")

        assert svc.release(r.id) is True
        assert svc.available_stock("p1") == 2

    def test_release_twice_is_noop(self):
        svc, _, reservations, _ = _setup()
        r = svc.reserve("p1", None, 2, "u1")
        svc.release(r.id)
        first = reservations.get_by_id(r.id)

        assert svc.release(r.id) is False
        second = reservations.get_by_id(r.id)
        assert second.status == ReservationStatus.RELEASED
        assert second.released_at == first.released_at

    def test_release_unknown(self):
        svc, _, _, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="not found"):
            svc.release("missing")


class TestConsume:

    def test_consume_deducts_physical_stock(self):
        svc, products, reservations, _ = _setup(stock=10)
        r = svc.reserve("p1", None, 4, "u1")

        svc.consume(r.id, order_id=42)

        stored = reservations.get_by_id(r.id)
        assert stored.status == ReservationStatus.CONSUMED
        assert stored.order_id == 42
        assert products.get_by_id("p1").stock_quantity == 6
        assert svc.available_stock("p1") == 6

    def test_consume_released_hold_rejected(self):
        svc, products, _, _ = _setup(stock=10)
        r = svc.reserve("p1", None, 4, "u1")
        svc.release(r.id)

        with pytest.raises(InvalidStateError):
            svc.consume(r.id, order_id=42)
        assert products.get_by_id("p1").stock_quantity == 10

    def test_release_after_consume_is_noop(self):
        svc, products, _, _ = _setup(stock=10)
        r = svc.reserve("p1", None, 4, "u1")
        svc.consume(r.id, order_id=42)

        assert svc.release(r.id) is False
        assert products.get_by_id("p1").stock_quantity == 6


class TestSweepAndExtend:

    def test_sweep_releases_only_expired(self):
        svc, _, reservations, clock = _setup(stock=10)
        old = svc.reserve("p1", None, 2, "u1")
        clock.advance(minutes=10)
        young = svc.reserve("p1", None, 2, "u2")
        clock.advance(minutes=6)

        assert svc.sweep_expired() == 1
        assert reservations.get_by_id(old.id).status == ReservationStatus.RELEASED
        assert reservations.get_by_id(young.id).status == ReservationStatus.HELD
        assert svc.sweep_expired() == 0

    def test_extend_pushes_back_expiry(self):
        svc, _, _, clock = _setup()
        r = svc.reserve("p1", None, 1, "u1")

        extended = svc.extend(r.id, minutes=5)

        assert extended.expires_at == r.expires_at + (svc.hold_window / 3)
        clock.advance(minutes=17)
        assert svc.held_quantity("p1") == 1

    def test_extend_requires_positive_minutes(self):
        svc, _, _, _ = _setup()
        r = svc.reserve("p1", None, 1, "u1")
        with pytest.raises(ValidationError, match="positive number of minutes"):
            svc.extend(r.id, minutes=0)
