"""JSON-file-backed implementation of ReservationRepository.

``lock_stock`` hands out one ``threading.Lock`` per (file, product).
Variants share their product's lock since their stock lives in the
same product record.  That serializes stock writers inside one
process; a deployment with several processes needs a store with real
row locks.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from minalesh.domain.model.reservation import InventoryReservation, ReservationStatus
from minalesh.domain.repository.reservation_repository import ReservationRepository
from minalesh.infrastructure.persistence.json_file import (
    JsonFile,
    datetime_from_raw,
    datetime_to_raw,
)

_stock_locks_guard = threading.Lock()
_stock_locks: dict[tuple[Path, str], threading.Lock] = {}


class JsonReservationRepository(ReservationRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path)

    # --- ReservationRepository interface --------------------------------------

    @contextmanager
    def lock_stock(self, product_id: str) -> Iterator[None]:
        key = (self._file.path, product_id)
        with _stock_locks_guard:
            lock = _stock_locks.setdefault(key, threading.Lock())
        with lock:
            yield

    def get_by_id(self, reservation_id: str) -> InventoryReservation | None:
        for raw in self._file.load():
            if raw["id"] == reservation_id:
                return self._to_domain(raw)
        return None

    def list_held(
        self, product_id: str, variant_id: str | None
    ) -> list[InventoryReservation]:
        return [
            self._to_domain(raw)
            for raw in self._file.load()
            if raw["status"] == ReservationStatus.HELD.value
            and raw["product_id"] == product_id
            and raw["variant_id"] == variant_id
        ]

    def list_expired(self, now: datetime) -> list[InventoryReservation]:
        held = (
            self._to_domain(raw)
            for raw in self._file.load()
            if raw["status"] == ReservationStatus.HELD.value
        )
        return [r for r in held if r.is_expired(now)]

    def list_by_order(self, order_id: int) -> list[InventoryReservation]:
        return [
            self._to_domain(raw)
            for raw in self._file.load()
            if raw.get("order_id") == order_id
        ]

    def save(self, reservation: InventoryReservation) -> None:
        self._file.upsert(self._to_raw(reservation))

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(reservation: InventoryReservation) -> dict:
        return {
            "id": reservation.id,
            "product_id": reservation.product_id,
            "variant_id": reservation.variant_id,
            "quantity": reservation.quantity,
            "user_id": reservation.user_id,
            "status": reservation.status.value,
            "order_id": reservation.order_id,
            "created_at": reservation.created_at.isoformat(),
            "expires_at": reservation.expires_at.isoformat(),
            "released_at": datetime_to_raw(reservation.released_at),
            "consumed_at": datetime_to_raw(reservation.consumed_at),
        }

    @staticmethod
    def _to_domain(raw: dict) -> InventoryReservation:
        return InventoryReservation(
            id=raw["id"],
            product_id=raw["product_id"],
            variant_id=raw.get("variant_id"),
            quantity=raw["quantity"],
            user_id=raw["user_id"],
            status=ReservationStatus(raw["status"]),
            order_id=raw.get("order_id"),
            created_at=datetime.fromisoformat(raw["created_at"]),
            expires_at=datetime.fromisoformat(raw["expires_at"]),
            released_at=datetime_from_raw(raw.get("released_at")),
            consumed_at=datetime_from_raw(raw.get("consumed_at")),
        )
