"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from pathlib import Path

from minalesh.domain.model.order import Order, OrderEvent, OrderItem, OrderTotals
from minalesh.domain.model.order_status import OrderStatus, PaymentStatus
from minalesh.domain.model.value_objects import Money, Quantity
from minalesh.domain.repository.order_repository import OrderRepository
from minalesh.infrastructure.persistence.json_file import (
    JsonFile,
    money_from_raw,
    money_to_raw,
)


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- OrderRepository interface --------------------------------------------

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._file.load():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def save(self, order: Order) -> None:
        with self._file.updating() as orders:
            if order.id is None:
                order.id = max((o["id"] for o in orders), default=0) + 1

            # Upsert: replace if exists, otherwise append
            for i, raw in enumerate(orders):
                if raw["id"] == order.id:
                    orders[i] = self._to_raw(order)
                    break
            else:
                orders.append(self._to_raw(order))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        totals = order.totals
        return {
            "id": order.id,
            "user_id": order.user_id,
            "order_number": order.order_number,
            "status": order.status.value,
            "payment_status": order.payment_status.value,
            "currency": order.currency,
            "subtotal": str(totals.subtotal.amount),
            "discount_amount": str(totals.discount.amount),
            "shipping_amount": str(totals.shipping.amount),
            "tax_amount": str(totals.tax.amount),
            "total_amount": str(totals.total.amount),
            "created_at": order.created_at.isoformat(),
            "shipping_address": order.shipping_address,
            "billing_address": order.billing_address,
            "coupon_id": order.coupon_id,
            "shipping_method_id": order.shipping_method_id,
            "shipping_zone_id": order.shipping_zone_id,
            "payment_intent_id": order.payment_intent_id,
            "capture_id": order.capture_id,
            "captured_amount": money_to_raw(order.captured_amount),
            "reservation_ids": list(order.reservation_ids),
            "timestamps": {k: v.isoformat() for k, v in order.timestamps.items()},
            "items": [
                {
                    "product_id": item.product_id,
                    "variant_id": item.variant_id,
                    "vendor_id": item.vendor_id,
                    "product_name": item.product_name,
                    "sku": item.sku,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                }
                for item in order.items
            ],
            "events": [
                {
                    "event_type": e.event_type,
                    "status": e.status.value,
                    "description": e.description,
                    "created_at": e.created_at.isoformat(),
                    "metadata": e.metadata,
                }
                for e in order.events
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw["currency"]

        def money(key: str) -> Money:
            return Money(Decimal(raw[key]), currency)

        items = [
            OrderItem(
                product_id=i["product_id"],
                variant_id=i.get("variant_id"),
                vendor_id=i["vendor_id"],
                product_name=i["product_name"],
                sku=i["sku"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), currency),
            )
            for i in raw["items"]
        ]
        events = [
            OrderEvent(
                event_type=e["event_type"],
                status=OrderStatus(e["status"]),
                description=e["description"],
                created_at=datetime.fromisoformat(e["created_at"]),
                metadata=e.get("metadata", {}),
            )
            for e in raw.get("events", [])
        ]
        return Order(
            id=raw["id"],
            user_id=raw["user_id"],
            order_number=raw["order_number"],
            items=items,
            totals=OrderTotals(
                subtotal=money("subtotal"),
                discount=money("discount_amount"),
                shipping=money("shipping_amount"),
                tax=money("tax_amount"),
                total=money("total_amount"),
            ),
            created_at=datetime.fromisoformat(raw["created_at"]),
            status=OrderStatus(raw["status"]),
            payment_status=PaymentStatus(raw["payment_status"]),
            shipping_address=raw.get("shipping_address"),
            billing_address=raw.get("billing_address"),
            coupon_id=raw.get("coupon_id"),
            shipping_method_id=raw.get("shipping_method_id"),
            shipping_zone_id=raw.get("shipping_zone_id"),
            payment_intent_id=raw.get("payment_intent_id"),
            capture_id=raw.get("capture_id"),
            captured_amount=money_from_raw(raw.get("captured_amount")),
            reservation_ids=list(raw.get("reservation_ids", [])),
            timestamps={
                k: datetime.fromisoformat(v) for k, v in raw.get("timestamps", {}).items()
            },
            events=events,
        )
