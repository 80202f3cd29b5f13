"""Integration tests for catalog, stock, coupon and rate maintenance."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from minalesh.application.add_coupon import AddCouponHandler
from minalesh.application.add_product import AddProductHandler, AddProductVariantHandler
from minalesh.application.manage_reservations import (
    ExtendReservationHandler,
    ReleaseReservationHandler,
    SweepExpiredReservationsHandler,
)
from minalesh.application.set_inventory import SetInventoryHandler
from minalesh.application.set_rates import SetShippingRateHandler, SetTaxRateHandler
from minalesh.application.show_inventory import ShowInventoryHandler
from minalesh.domain.exceptions import EntityNotFoundError, ValidationError
from minalesh.domain.model.coupon import DiscountType
from minalesh.domain.model.value_objects import Money
from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)
from tests.fakes import (
    FakeClock,
    FakeCouponRepository,
    FakeProductRepository,
    FakeReservationRepository,
    FakeShippingRateRepository,
    FakeTaxRateRepository,
)


class TestAddProduct:

    def test_ids_and_skus_are_assigned(self):
        repo = FakeProductRepository()
        handler = AddProductHandler(repo)

        first = handler.handle("Jebena", "1000", vendor_id="v1", stock=4)
        second = handler.handle("Mesob", "800", vendor_id="v1", sale_price="650")

        assert (first.id, first.sku, first.stock_quantity) == ("1", "SKU-1", 4)
        assert second.id == "2"
        assert second.unit_price == Money.of("650")

    def test_sale_price_must_be_lower(self):
        with pytest.raises(ValidationError, match="Sale price must be less"):
            AddProductHandler(FakeProductRepository()).handle(
                "Jebena", "1000", vendor_id="v1", sale_price="1200"
            )

    def test_duplicate_sku_rejected(self):
        handler = AddProductHandler(FakeProductRepository())
        handler.handle("Jebena", "1000", vendor_id="v1", sku="jeb")
        with pytest.raises(ValidationError, match="SKU 'JEB' is already in use"):
            handler.handle("Other", "10", vendor_id="v2", sku="JEB")

    def test_add_variant(self):
        repo = FakeProductRepository()
        product = AddProductHandler(repo).handle("Mesob", "800", vendor_id="v1", sku="MES")

        handler = AddProductVariantHandler(repo, FakeReservationRepository())

        variant = handler.handle(product.id, "Large", stock=2)

        assert variant.id == "1-1"
        assert variant.sku == "MES-1"
        assert repo.get_by_id(product.id).stock_for("1-1") == 2


class TestInventory:

    def _setup(self):
        products = FakeProductRepository()
        AddProductHandler(products).handle("Jebena", "1000", vendor_id="v1", stock=5)
        reservation_repo = FakeReservationRepository()
        clock = FakeClock()
        svc = InventoryReservationService(reservation_repo, products, clock=clock)
        return products, reservation_repo, svc, clock

    def test_set_stock(self):
        products, _, svc, _ = self._setup()

        SetInventoryHandler(svc).handle("1", 12)

        assert products.get_by_id("1").stock_quantity == 12

    def test_set_stock_unknown_product(self):
        _, _, svc, _ = self._setup()
        with pytest.raises(EntityNotFoundError):
            SetInventoryHandler(svc).handle("99", 1)

    def test_set_stock_below_held_quantity_is_rejected(self):
        products, _, svc, _ = self._setup()
        svc.reserve("1", None, 3, "u1")

        with pytest.raises(ValidationError, match=r"3 unit\(s\) are held"):
            SetInventoryHandler(svc).handle("1", 2)

        assert products.get_by_id("1").stock_quantity == 5

    def test_set_stock_down_to_held_quantity_is_allowed(self):
        _, _, svc, _ = self._setup()
        svc.reserve("1", None, 3, "u1")

        SetInventoryHandler(svc).handle("1", 3)

        assert svc.available_stock("1") == 0

    def test_expired_holds_do_not_block_lowering_stock(self):
        products, _, svc, clock = self._setup()
        svc.reserve("1", None, 3, "u1")
        clock.advance(minutes=16)

        SetInventoryHandler(svc).handle("1", 1)

        assert products.get_by_id("1").stock_quantity == 1

    def test_show_inventory_reports_held_and_available(self):
        products, _, svc, _ = self._setup()
        svc.reserve("1", None, 2, "u1")

        (line,) = ShowInventoryHandler(products, svc).handle()

        assert (line.stock, line.held, line.available) == (5, 2, 3)

    def test_release_extend_and_sweep(self):
        _, reservation_repo, svc, clock = self._setup()
        a = svc.reserve("1", None, 1, "u1")
        b = svc.reserve("1", None, 1, "u2")

        assert ReleaseReservationHandler(svc).handle(a.id) is True
        assert ReleaseReservationHandler(svc).handle(a.id) is False
        extended = ExtendReservationHandler(svc).handle(b.id, minutes=30)
        assert extended.status == "held"

        clock.advance(minutes=20)
        assert SweepExpiredReservationsHandler(svc).handle() == 0
        clock.advance(minutes=30)
        assert SweepExpiredReservationsHandler(svc).handle() == 1


class TestCoupons:

    def test_add_coupon(self):
        repo = FakeCouponRepository()

        coupon = AddCouponHandler(repo).handle(
            "welcome10", "percentage", "10", maximum_discount="200", product_ids=["1"]
        )

        assert coupon.code == "WELCOME10"
        assert coupon.discount_type == DiscountType.PERCENTAGE
        assert repo.get_by_code("Welcome10") is coupon

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            ({"discount_type": "percentage", "discount_value": "150"}, "between 0 and 100"),
            ({"discount_type": "fixed_amount", "discount_value": "0"}, "greater than zero"),
            ({"discount_type": "bogo", "discount_value": "1"}, "Discount type must be"),
            ({"discount_type": "fixed_amount", "discount_value": "abc"}, "Invalid discount value"),
            (
                {
                    "discount_type": "fixed_amount",
                    "discount_value": "50",
                    "starts_at": datetime(2026, 5, 1, tzinfo=timezone.utc),
                    "expires_at": datetime(2026, 4, 1, tzinfo=timezone.utc),
                },
                "End date must be after start date",
            ),
        ],
    )
    def test_invalid_coupons(self, kwargs, message):
        with pytest.raises(ValidationError, match=message):
            AddCouponHandler(FakeCouponRepository()).handle("X", **kwargs)

    def test_duplicate_code(self):
        repo = FakeCouponRepository()
        AddCouponHandler(repo).handle("SAVE", "fixed_amount", "50")
        with pytest.raises(ValidationError, match="already exists"):
            AddCouponHandler(repo).handle("save", "fixed_amount", "60")


class TestRates:

    def test_shipping_rate_upsert(self):
        repo = FakeShippingRateRepository()
        SetShippingRateHandler(repo).handle("standard", "addis", "150")
        SetShippingRateHandler(repo).handle("standard", "addis", "120", "1000")

        rate = repo.find("standard", "addis")
        assert rate.base_rate == Money.of("120")
        assert rate.free_shipping_threshold == Money.of("1000")

    def test_tax_rate(self):
        repo = FakeTaxRateRepository()
        SetTaxRateHandler(repo).handle("VAT", "et", "0.15", priority=1)

        (rate,) = repo.list_active("ET")
        assert rate.rate == Decimal("0.15")

    def test_tax_rate_must_be_fraction(self):
        with pytest.raises(ValidationError, match="fraction"):
            SetTaxRateHandler(FakeTaxRateRepository()).handle("VAT", "ET", "15")
