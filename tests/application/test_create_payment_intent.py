"""Integration tests for the CreatePaymentIntent (checkout) use case."""

import logging

import pytest

from minalesh.application.auth import Actor
from minalesh.application.dto import CartItemSpec
from minalesh.domain.exceptions import (
    ErrorKind,
    InsufficientInventoryError,
    ProductNotFoundError,
    ValidationError,
)
from minalesh.domain.model.order_status import OrderStatus, PaymentStatus
from minalesh.domain.model.product import Product, ProductVariant
from minalesh.domain.model.reservation import ReservationStatus
from minalesh.domain.model.value_objects import Money
from tests.fakes import FakePaymentGateway, InMemoryMarketplace

BUYER = Actor("buyer-1")


def _products() -> list[Product]:
    return [
        Product(id="p1", name="Jebena", sku="JEB", vendor_id="v1",
                price=Money.of("1000"), stock_quantity=5),
        Product(id="p2", name="Mesob", sku="MES", vendor_id="v2",
                price=Money.of("800"), sale_price=Money.of("600"), stock_quantity=5,
                variants={"lg": ProductVariant(id="lg", name="Large", sku="MES-L", stock_quantity=2)}),
        Product(id="p3", name="Netela", sku="NET", vendor_id="v1",
                price=Money.of("300"), stock_quantity=1),
    ]


class TestCheckoutHappyPath:

    def test_creates_pending_order_with_holds_and_intent(self):
        m = InMemoryMarketplace(_products())

        result = m.create_intent.handle(BUYER, [CartItemSpec("p1", 2)])

        order = m.orders.get_by_id(result.order.id)
        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert result.order.subtotal == "2000.00"
        assert result.order.discount_amount == "0.00"
        assert result.order.shipping_amount == "0.00"
        assert result.order.tax_amount == "300.00"
        assert result.order.total_amount == "2300.00"

        assert result.payment.intent_id == order.payment_intent_id
        assert m.gateway.intents[result.payment.intent_id] == (230000, "ETB")

        (held,) = [m.reservation_repo.get_by_id(rid) for rid in result.reservation_ids]
        assert held.status == ReservationStatus.HELD
        assert held.order_id == order.id
        assert result.expires_at == (m.clock.now + m.reservations.hold_window).isoformat()

    def test_items_snapshot_sale_price_and_variant(self):
        m = InMemoryMarketplace(_products())

        result = m.create_intent.handle(BUYER, [CartItemSpec("p2", 1, variant_id="lg")])

        (item,) = result.order.items
        assert item.unit_price == "600.00"
        assert item.product_name == "Mesob (Large)"
        assert item.sku == "MES-L"
        assert m.reservations.available_stock("p2", "lg") == 1

    def test_later_price_change_does_not_touch_order(self):
        m = InMemoryMarketplace(_products())
        result = m.create_intent.handle(BUYER, [CartItemSpec("p1", 1)])

        m.products.get_by_id("p1").update_price(Money.of("5000"))

        assert m.orders.get_by_id(result.order.id).items[0].unit_price == Money.of("1000")

    def test_pending_notification_dispatched(self):
        m = InMemoryMarketplace(_products())
        result = m.create_intent.handle(BUYER, [CartItemSpec("p1", 1)])

        assert m.sender.sent == [(result.order.id, "pending")]


class TestCheckoutRollback:

    def test_failing_third_line_releases_first_two(self):
        m = InMemoryMarketplace(_products())

        with pytest.raises(InsufficientInventoryError) as exc_info:
            m.create_intent.handle(
                BUYER,
                [CartItemSpec("p1", 1), CartItemSpec("p2", 1), CartItemSpec("p3", 2)],
            )

        assert exc_info.value.item_index == 2
        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_STOCK
        assert exc_info.value.available == 1
        assert m.orders.all() == []
        statuses = sorted((r.product_id, r.status) for r in m.reservation_repo.all())
        assert statuses == [
            ("p1", ReservationStatus.RELEASED),
            ("p2", ReservationStatus.RELEASED),
        ]
        assert m.reservations.available_stock("p1") == 5
        assert m.reservations.available_stock("p2") == 5
        assert m.gateway.intents == {}

    def test_pricing_failure_also_releases(self):
        m = InMemoryMarketplace(_products())

        with pytest.raises(ValidationError, match="not available"):
            m.create_intent.handle(BUYER, [CartItemSpec("p1", 1)], shipping_method_id="drone")

        assert all(r.status == ReservationStatus.RELEASED for r in m.reservation_repo.all())
        assert m.orders.all() == []


class TestCheckoutValidation:

    def test_missing_products_listed(self):
        m = InMemoryMarketplace(_products())

        with pytest.raises(ProductNotFoundError) as exc_info:
            m.create_intent.handle(
                BUYER,
                [CartItemSpec("p1", 1), CartItemSpec("ghost", 1), CartItemSpec("p2", 1, "xl")],
            )

        assert exc_info.value.missing_ids == ["ghost", "p2/xl"]
        assert m.reservation_repo.all() == []

    def test_empty_cart(self):
        m = InMemoryMarketplace(_products())
        with pytest.raises(ValidationError, match="at least one item"):
            m.create_intent.handle(BUYER, [])

    def test_quantity_over_limit(self):
        m = InMemoryMarketplace(_products())
        with pytest.raises(ValidationError, match="per-item limit"):
            m.create_intent.handle(BUYER, [CartItemSpec("p1", 1000)])
        assert m.reservation_repo.all() == []


class TestGatewayFailure:

    def test_order_stays_pending_without_handle(self, caplog):
        m = InMemoryMarketplace(_products(), gateway=FakePaymentGateway(fail_intent=True))

        with caplog.at_level(logging.WARNING):
            result = m.create_intent.handle(BUYER, [CartItemSpec("p1", 1)])

        assert result.payment is None
        order = m.orders.get_by_id(result.order.id)
        assert order.status == OrderStatus.PENDING
        assert order.payment_intent_id is None
        assert all(r.is_held for r in m.reservation_repo.all())
        assert "Payment intent not created" in caplog.text
