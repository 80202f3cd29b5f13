"""Domain service: Inventory Reservation Store.

Guarantees that no more units of a product/variant are promised to
in-flight checkouts than physically exist, using short-lived holds
instead of permanent decrements.  This is the only code path that
writes stock: ``reserve`` / ``release`` / ``consume`` / ``set_stock`` /
``sweep_expired`` all run under the repository's per-product stock lock,
so the availability check and the write that depends on it are one
atomic unit.  The lock covers the whole product record, variants
included, because stock for every variant lives in that one record.

Availability is ``stock - sum(held, unexpired)``.  A hold past its
``expires_at`` stops counting immediately, before the sweep gets to it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from minalesh.domain.exceptions import (
    EntityNotFoundError,
    InsufficientStockError,
    ProductNotFoundError,
    ValidationError,
)
from minalesh.domain.model.clock import Clock, utc_now
from minalesh.domain.model.product import Product
from minalesh.domain.model.reservation import InventoryReservation
from minalesh.domain.repository.product_repository import ProductRepository
from minalesh.domain.repository.reservation_repository import ReservationRepository

_logger = logging.getLogger(__name__)

RESERVATION_TIMEOUT_MINUTES = 15


class InventoryReservationService:

    def __init__(
        self,
        reservation_repo: ReservationRepository,
        product_repo: ProductRepository,
        hold_minutes: int = RESERVATION_TIMEOUT_MINUTES,
        clock: Clock = utc_now,
    ) -> None:
        self._reservation_repo = reservation_repo
        self._product_repo = product_repo
        self._hold_window = timedelta(minutes=hold_minutes)
        self._clock = clock

    @property
    def hold_window(self) -> timedelta:
        return self._hold_window

    def reserve(
        self,
        product_id: str,
        variant_id: str | None,
        quantity: int,
        user_id: str,
    ) -> InventoryReservation:
        """Hold ``quantity`` units, or raise InsufficientStockError.

        Two concurrent calls for the last unit serialize on the stock
        lock; the second one sees the first hold and fails.
        """
        if not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError("Quantity must be positive")

        with self._reservation_repo.lock_stock(product_id):
            product = self._load_product(product_id, variant_id)
            now = self._clock()
            available = self._available(product, variant_id, now)
            if quantity > available:
                _logger.info(
                    "Reservation refused | product=%s variant=%s requested=%s available=%s",
                    product_id, variant_id, quantity, available,
                )
                raise InsufficientStockError(product_id, variant_id, quantity, available)

            reservation = InventoryReservation.hold(
                product_id=product_id,
                variant_id=variant_id,
                quantity=quantity,
                user_id=user_id,
                now=now,
                hold_for=self._hold_window,
            )
            self._reservation_repo.save(reservation)

        _logger.info(
            "Reservation held | id=%s product=%s variant=%s qty=%s expires_at=%s",
            reservation.id, product_id, variant_id, quantity,
            reservation.expires_at.isoformat(),
        )
        return reservation

    def available_stock(self, product_id: str, variant_id: str | None = None) -> int:
        product = self._load_product(product_id, variant_id)
        return max(0, self._available(product, variant_id, self._clock()))

    def held_quantity(self, product_id: str, variant_id: str | None = None) -> int:
        return self._held(product_id, variant_id, self._clock())

    def release(self, reservation_id: str) -> bool:
        """Release a hold.  Idempotent: returns False if it was already closed."""
        reservation = self._get(reservation_id)
        with self._reservation_repo.lock_stock(reservation.product_id):
            reservation = self._get(reservation_id)
            changed = reservation.release(self._clock())
            if changed:
                self._reservation_repo.save(reservation)

        if changed:
            _logger.info("Reservation released | id=%s", reservation_id)
        return changed

    def release_for_order(self, order_id: int) -> int:
        """Release every hold of an order that is still ``held``.

        Consumed holds are left alone: sold stock is not put back.
        Returns how many holds were released.
        """
        released = 0
        for reservation in self._reservation_repo.list_by_order(order_id):
            if reservation.is_held and self.release(reservation.id):
                released += 1
        return released

    def set_stock(self, product_id: str, variant_id: str | None, quantity: int) -> None:
        """Set physical stock, never below what active holds have promised."""
        with self._reservation_repo.lock_stock(product_id):
            product = self._load_product(product_id, variant_id)
            held = self._held(product_id, variant_id, self._clock())
            if held and quantity < held:
                raise ValidationError(
                    f"Cannot set stock to {quantity}: {held} unit(s) are held "
                    f"by pending checkouts"
                )
            product.set_stock(variant_id, quantity)
            self._product_repo.save(product)

        _logger.info(
            "Stock set | product=%s variant=%s quantity=%s held=%s",
            product_id, variant_id, quantity, held,
        )

    def consume(self, reservation_id: str, order_id: int) -> InventoryReservation:
        """Turn a hold into a sale: link the order and deduct physical stock."""
        reservation = self._get(reservation_id)
        with self._reservation_repo.lock_stock(reservation.product_id):
            reservation = self._get(reservation_id)
            reservation.consume(order_id, self._clock())

            product = self._load_product(reservation.product_id, reservation.variant_id)
            product.deduct_stock(reservation.variant_id, reservation.quantity)
            self._product_repo.save(product)
            self._reservation_repo.save(reservation)

        _logger.info(
            "Reservation consumed | id=%s order_id=%s qty=%s",
            reservation_id, order_id, reservation.quantity,
        )
        return reservation

    def link_to_order(self, reservation_id: str, order_id: int) -> None:
        reservation = self._get(reservation_id)
        with self._reservation_repo.lock_stock(reservation.product_id):
            reservation = self._get(reservation_id)
            reservation.link_to(order_id)
            self._reservation_repo.save(reservation)

    def extend(self, reservation_id: str, minutes: int | None = None) -> InventoryReservation:
        """Push back the expiry of a hold that is still active."""
        by = self._hold_window if minutes is None else timedelta(minutes=minutes)
        if by <= timedelta(0):
            raise ValidationError("Extension must be a positive number of minutes")

        reservation = self._get(reservation_id)
        with self._reservation_repo.lock_stock(reservation.product_id):
            reservation = self._get(reservation_id)
            reservation.extend(by, self._clock())
            self._reservation_repo.save(reservation)
        return reservation

    def sweep_expired(self) -> int:
        """Release every held reservation past its expiry.  Returns the count."""
        released = 0
        for stale in self._reservation_repo.list_expired(self._clock()):
            with self._reservation_repo.lock_stock(stale.product_id):
                current = self._reservation_repo.get_by_id(stale.id)
                now = self._clock()
                if current is None or not current.is_expired(now):
                    continue
                if current.release(now):
                    self._reservation_repo.save(current)
                    released += 1

        if released:
            _logger.info("Expired reservations swept | released=%s", released)
        return released

    # --- Internal helpers -----------------------------------------------------

    def _available(self, product: Product, variant_id: str | None, now: datetime) -> int:
        return product.stock_for(variant_id) - self._held(product.id, variant_id, now)

    def _held(self, product_id: str, variant_id: str | None, now: datetime) -> int:
        return sum(
            r.quantity
            for r in self._reservation_repo.list_held(product_id, variant_id)
            if r.is_active(now)
        )

    def _load_product(self, product_id: str, variant_id: str | None) -> Product:
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise ProductNotFoundError([product_id])
        if variant_id is not None and product.variant(variant_id) is None:
            raise ProductNotFoundError([f"{product_id}/{variant_id}"])
        return product

    def _get(self, reservation_id: str) -> InventoryReservation:
        reservation = self._reservation_repo.get_by_id(reservation_id)
        if reservation is None:
            raise EntityNotFoundError(f"Reservation '{reservation_id}' not found")
        return reservation
