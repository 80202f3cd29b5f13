"""Shared file helper for the JSON-file-backed repositories.

Each file gets one process-wide ``RLock`` so read-modify-write cycles
from several repository instances (or threads) do not interleave.
Writes go to a temporary sibling and are moved into place.
"""

from __future__ import annotations

import json
import os
import threading
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterator

from minalesh.domain.model.value_objects import DEFAULT_CURRENCY, Money

_registry_lock = threading.Lock()
_file_locks: dict[Path, threading.RLock] = {}


def _lock_for(path: Path) -> threading.RLock:
    with _registry_lock:
        lock = _file_locks.get(path)
        if lock is None:
            lock = _file_locks[path] = threading.RLock()
        return lock


class JsonFile:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.resolve()
        self._lock = _lock_for(self._file_path)
        self._ensure_file()

    @property
    def path(self) -> Path:
        return self._file_path

    def load(self) -> list[dict[str, Any]]:
        with self._lock:
            return json.loads(self._file_path.read_text(encoding="utf-8"))

    def persist(self, records: list[dict[str, Any]]) -> None:
        with self._lock:
            tmp = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
            tmp.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp, self._file_path)

    @contextmanager
    def updating(self) -> Iterator[list[dict[str, Any]]]:
        """Load, let the caller mutate the list in place, then persist."""
        with self._lock:
            records = self.load()
            yield records
            self.persist(records)

    def upsert(self, record: dict[str, Any], key: str = "id") -> None:
        with self.updating() as records:
            for i, raw in enumerate(records):
                if raw[key] == record[key]:
                    records[i] = record
                    break
            else:
                records.append(record)

    def _ensure_file(self) -> None:
        with self._lock:
            if not self._file_path.exists():
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
                self._file_path.write_text("[]", encoding="utf-8")


# --- Field codecs -------------------------------------------------------------


def datetime_to_raw(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def datetime_from_raw(raw: str | None) -> datetime | None:
    return datetime.fromisoformat(raw) if raw is not None else None


def money_to_raw(value: Money | None) -> dict[str, str] | None:
    if value is None:
        return None
    return {"amount": str(value.amount), "currency": value.currency}


def money_from_raw(raw: dict[str, str] | None) -> Money | None:
    if raw is None:
        return None
    return Money(Decimal(raw["amount"]), raw.get("currency", DEFAULT_CURRENCY))
