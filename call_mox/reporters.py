"""Failure reporting sinks used by :class:`Controller`."""

from __future__ import annotations

import logging
import threading
import typing as t

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .errors import CallMoxError

logger = logging.getLogger(__name__)


class TestReporter(t.Protocol):
    """Sink receiving failures detected by a controller.

    ``error`` records a failure and lets execution continue. ``fatal`` records
    a failure and must not return.
    """

    def error(self, err: CallMoxError) -> None:
        """Record a non-fatal failure."""
        ...

    def fatal(self, err: CallMoxError) -> t.NoReturn:
        """Record a failure and abort the running test."""
        ...


class RaisingReporter:
    """Log failures, keep them for inspection and raise fatal ones."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.errors: list[CallMoxError] = []
        self.fatal_errors: list[CallMoxError] = []

    def error(self, err: CallMoxError) -> None:
        """Log and record *err*."""
        logger.error("%s", err)
        with self._lock:
            self.errors.append(err)

    def fatal(self, err: CallMoxError) -> t.NoReturn:
        """Log and record *err*, then raise it."""
        logger.error("%s", err)
        with self._lock:
            self.fatal_errors.append(err)
        raise err


__all__ = ["RaisingReporter", "TestReporter"]
