"""Application service: Create Payment Intent use case.

The checkout saga.  Turns a validated cart into a ``pending`` order
with held inventory and, when the gateway cooperates, a client-side
payment handle:

1. Resolve every product / variant (fail fast, nothing held yet).
2. Reserve each line in turn.  The first refusal releases every hold
   taken so far and surfaces InsufficientInventoryError.
3. Price the cart.
4. Persist the order and link the holds to it (still ``held``).
5. Ask the gateway for an intent.  A gateway failure leaves the order
   pending without a handle; capture will retry the intent.
"""

from __future__ import annotations

import logging
from typing import Any

from minalesh.application.auth import Actor
from minalesh.application.dto import (
    CartItemSpec,
    OrderDTO,
    PaymentHandleDTO,
    PaymentIntentDTO,
)
from minalesh.application.notifications import NotificationDispatcher
from minalesh.domain.exceptions import (
    GatewayError,
    InsufficientInventoryError,
    InsufficientStockError,
    ProductNotFoundError,
    ValidationError,
)
from minalesh.domain.gateway.payment_gateway import PaymentGateway, PaymentIntent
from minalesh.domain.model.clock import Clock, utc_now
from minalesh.domain.model.order import Order, OrderItem
from minalesh.domain.model.product import Product
from minalesh.domain.model.value_objects import Quantity
from minalesh.domain.repository.order_repository import OrderRepository
from minalesh.domain.repository.product_repository import ProductRepository
from minalesh.domain.service.compensation import Compensation
from minalesh.domain.service.inventory_reservation_service import (
    InventoryReservationService,
)
from minalesh.domain.service.pricing_service import PriceLine, PricingCalculator

_logger = logging.getLogger(__name__)


class CreatePaymentIntentHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        reservations: InventoryReservationService,
        pricing: PricingCalculator,
        gateway: PaymentGateway,
        notifications: NotificationDispatcher,
        gateway_currency: str | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo
        self._reservations = reservations
        self._pricing = pricing
        self._gateway = gateway
        self._notifications = notifications
        self._gateway_currency = gateway_currency
        self._clock = clock

    def handle(
        self,
        actor: Actor,
        items: list[CartItemSpec],
        shipping_address: dict[str, Any] | None = None,
        billing_address: dict[str, Any] | None = None,
        coupon_code: str | None = None,
        shipping_method_id: str | None = None,
        shipping_zone_id: str | None = None,
    ) -> PaymentIntentDTO:
        started_at = self._clock()
        products = self._resolve_products(items)

        with Compensation("checkout") as saga:
            reservation_ids: list[str] = []
            for index, spec in enumerate(items):
                try:
                    held = self._reservations.reserve(
                        spec.product_id, spec.variant_id, spec.quantity, actor.user_id
                    )
                except InsufficientStockError as exc:
                    raise InsufficientInventoryError(index, exc) from exc
                saga.push(self._reservations.release, held.id)
                reservation_ids.append(held.id)

            order_items = [
                self._snapshot(products[spec.product_id], spec) for spec in items
            ]
            breakdown = self._pricing.calculate(
                [
                    PriceLine(item.product_id, item.unit_price, item.quantity.value)
                    for item in order_items
                ],
                coupon_code=coupon_code,
                shipping_method_id=shipping_method_id,
                shipping_zone_id=shipping_zone_id,
                country=(shipping_address or {}).get("country"),
            )

            order = Order.place(
                user_id=actor.user_id,
                items=order_items,
                totals=breakdown.totals,
                now=self._clock(),
                reservation_ids=reservation_ids,
                shipping_address=shipping_address,
                billing_address=billing_address,
                coupon_id=breakdown.coupon_id,
                shipping_method_id=shipping_method_id,
                shipping_zone_id=breakdown.shipping_zone_id,
            )
            self._order_repo.save(order)
            for reservation_id in reservation_ids:
                self._reservations.link_to_order(reservation_id, order.id)  # type: ignore[arg-type]
            saga.commit()

        _logger.info(
            "Order placed | order=%s user=%s total=%s reservations=%s",
            order.order_number, actor.user_id, order.total, len(reservation_ids),
        )

        intent = self._open_intent(order)
        self._notifications.status_reached(order.id, order.status)  # type: ignore[arg-type]

        return PaymentIntentDTO(
            order=OrderDTO.from_order(order),
            reservation_ids=reservation_ids,
            payment=(
                PaymentHandleDTO(intent.id, intent.client_handle, intent.currency)
                if intent is not None
                else None
            ),
            expires_at=(started_at + self._reservations.hold_window).isoformat(),
        )

    # --- Steps ----------------------------------------------------------------

    def _resolve_products(self, items: list[CartItemSpec]) -> dict[str, Product]:
        if not items:
            raise ValidationError("Cart must contain at least one item")
        for spec in items:
            Quantity(spec.quantity)

        products: dict[str, Product] = {}
        missing: list[str] = []
        for spec in items:
            product = products.get(spec.product_id) or self._product_repo.get_by_id(
                spec.product_id
            )
            if product is None:
                if spec.product_id not in missing:
                    missing.append(spec.product_id)
                continue
            products[product.id] = product
            if spec.variant_id is not None and product.variant(spec.variant_id) is None:
                missing.append(f"{spec.product_id}/{spec.variant_id}")

        if missing:
            raise ProductNotFoundError(missing)
        return products

    @staticmethod
    def _snapshot(product: Product, spec: CartItemSpec) -> OrderItem:
        variant = product.variant(spec.variant_id) if spec.variant_id else None
        return OrderItem(
            product_id=product.id,
            variant_id=spec.variant_id,
            vendor_id=product.vendor_id,
            product_name=product.name if variant is None else f"{product.name} ({variant.name})",
            sku=product.sku if variant is None else variant.sku,
            quantity=Quantity(spec.quantity),
            unit_price=product.unit_price,  # <-- price snapshot
        )

    def _open_intent(self, order: Order) -> PaymentIntent | None:
        currency = self._gateway_currency or order.currency
        try:
            intent = self._gateway.create_intent(
                order.total.minor_units,
                currency,
                {
                    "order_id": order.id,
                    "order_number": order.order_number,
                    "user_id": order.user_id,
                },
            )
        except GatewayError as exc:
            _logger.warning(
                "Payment intent not created; order stays pending | order=%s error=%s",
                order.order_number, exc,
            )
            return None

        order.payment_intent_id = intent.id
        self._order_repo.save(order)
        return intent

