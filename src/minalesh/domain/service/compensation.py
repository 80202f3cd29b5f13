"""All-or-nothing across independent atomic operations.

Some workflows take several resources that no single transaction spans
(e.g. stock holds on different rows).  ``Compensation`` collects an undo
action for each step that succeeded; if the block exits with an
exception the undos run in reverse order, then the exception propagates.

    with Compensation() as saga:
        for line in lines:
            held = store.reserve(...)
            saga.push(store.release, held.id)
        ...  # any failure up to here releases every hold
        saga.commit()
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from types import TracebackType
from typing import Any

_logger = logging.getLogger(__name__)


class Compensation:

    def __init__(self, name: str = "saga") -> None:
        self._name = name
        self._undo: list[tuple[Callable[..., Any], tuple[Any, ...]]] = []
        self._committed = False

    def push(self, undo: Callable[..., Any], *args: Any) -> None:
        if self._committed:
            raise RuntimeError(f"{self._name}: cannot register undo after commit")
        self._undo.append((undo, args))

    def commit(self) -> None:
        """Keep everything done so far; later failures no longer roll back."""
        self._committed = True
        self._undo.clear()

    def rollback(self) -> int:
        """Run the undo actions newest-first.  Returns how many succeeded.

        A failing undo is logged and the rest still run, so one stuck
        resource does not pin every other one.
        """
        undone = 0
        while self._undo:
            undo, args = self._undo.pop()
            try:
                undo(*args)
                undone += 1
            except Exception:
                _logger.exception("%s: compensation step %r failed", self._name, undo)
        return undone

    def __enter__(self) -> Compensation:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and not self._committed and self._undo:
            _logger.info(
                "%s: rolling back %d step(s) after %s",
                self._name, len(self._undo), exc_type.__name__,
            )
            self.rollback()
