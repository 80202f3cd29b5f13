"""Helpers shared by the CLI command modules."""

from __future__ import annotations

from typing import Callable

import click

from minalesh.application.auth import Actor
from minalesh.domain.exceptions import DomainException


def actor_options(func: Callable) -> Callable:
    """Add ``--user`` / ``--role``, standing in for an authenticated session."""
    func = click.option(
        "--role",
        default="customer",
        show_default=True,
        type=click.Choice(["customer", "vendor", "admin"]),
        help="Role of the caller.",
    )(func)
    func = click.option("--user", "user_id", required=True, help="Caller's user ID.")(func)
    return func


def actor(user_id: str, role: str) -> Actor:
    return Actor(user_id=user_id, role=role)


def fail(exc: DomainException) -> click.ClickException:
    return click.ClickException(f"[{exc.kind.value}] {exc}")
