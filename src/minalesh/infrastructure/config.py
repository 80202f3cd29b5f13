"""Runtime settings, read from ``MINALESH_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path

from minalesh.domain.exceptions import ValidationError

# When installed in editable mode the project root is the repo root.
_DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


def _get_int(env_name: str, default: int) -> int:
    val = os.getenv(env_name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError:
        raise ValidationError(f"{env_name} must be an integer, got {val!r}") from None


def _get_decimal(env_name: str, default: str) -> Decimal:
    val = os.getenv(env_name)
    if val is None or not val.strip():
        return Decimal(default)
    try:
        parsed = Decimal(val.strip())
    except InvalidOperation:
        raise ValidationError(f"{env_name} must be a decimal number, got {val!r}") from None
    if not parsed.is_finite():
        raise ValidationError(f"{env_name} must be a finite number, got {val!r}")
    return parsed


@dataclass(frozen=True)
class Settings:
    # Storage
    data_dir: Path = _DEFAULT_DATA_DIR

    # Checkout
    reservation_hold_minutes: int = 15
    currency: str = "ETB"
    gateway_currency: str = "ETB"

    # Tax
    default_tax_rate: Decimal = field(default=Decimal("0.15"))
    tax_country: str = "ET"

    # Notifications
    notify_workers: int = 4

    # Logging
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        currency = os.getenv("MINALESH_CURRENCY", "ETB").upper()
        return cls(
            data_dir=Path(os.getenv("MINALESH_DATA_DIR", str(_DEFAULT_DATA_DIR))),
            reservation_hold_minutes=_get_int("MINALESH_RESERVATION_HOLD_MINUTES", 15),
            currency=currency,
            gateway_currency=os.getenv("MINALESH_GATEWAY_CURRENCY", currency).upper(),
            default_tax_rate=_get_decimal("MINALESH_DEFAULT_TAX_RATE", "0.15"),
            tax_country=os.getenv("MINALESH_TAX_COUNTRY", "ET").upper(),
            notify_workers=_get_int("MINALESH_NOTIFY_WORKERS", 4),
            log_level=os.getenv("MINALESH_LOG_LEVEL", "INFO").upper(),
        )
