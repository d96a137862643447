"""
fleet_kernel.logging_config -- JSON-lines logging for valuation runs.

Responsibility:
    Every record under the ``fleet_kernel`` logger tree is written as one
    JSON object: a fixed envelope (ts, level, logger, message), the run
    context bound by the calling service, the ``extra`` fields supplied at
    the call site, and exception details when present.

Architecture position:
    Kernel -- imported by every layer, depends on the standard library only.

Invariants enforced:
    - Run context lives in contextvars, so concurrent service calls never
      see each other's correlation or equipment ids.
    - ``LogContext.bind`` restores the previous values on exit, including
      when the body raises.
    - ``configure_logging`` installs one handler no matter how often it is
      called, until ``reset_logging``.

Usage:
    from fleet_kernel.logging_config import LogContext, get_logger

    logger = get_logger("engines.rollup")
    with LogContext.bind(correlation_id=run_id, producer="fleet_analysis"):
        logger.info("rollup_completed", extra={"line_count": 4})
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, TextIO

__all__ = [
    "CONTEXT_FIELDS",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

LOGGER_ROOT = "fleet_kernel"

# correlation_id: one service call; producer: the service that made it;
# equipment_id: the asset being valued, when there is exactly one
CONTEXT_FIELDS = ("correlation_id", "producer", "equipment_id")

_context_vars: dict[str, ContextVar[str | None]] = {
    name: ContextVar(f"fleet_log_{name}", default=None) for name in CONTEXT_FIELDS
}


class LogContext:
    """
    Run context stamped onto every log record.

    Contract:
        Only the names in ``CONTEXT_FIELDS`` are accepted.  ``None`` values
        are ignored rather than clearing a field.
    """

    @staticmethod
    def set(
        *,
        correlation_id: str | None = None,
        producer: str | None = None,
        equipment_id: str | None = None,
    ) -> None:
        values = {
            "correlation_id": correlation_id,
            "producer": producer,
            "equipment_id": equipment_id,
        }
        for name, value in values.items():
            if value is not None:
                _context_vars[name].set(value)

    @staticmethod
    def get_all() -> dict[str, str]:
        """Bound fields only; unset fields are omitted."""
        return {
            name: value
            for name, var in _context_vars.items()
            if (value := var.get()) is not None
        }

    @staticmethod
    def clear() -> None:
        for var in _context_vars.values():
            var.set(None)

    @staticmethod
    @contextmanager
    def bind(
        *,
        correlation_id: str | None = None,
        producer: str | None = None,
        equipment_id: str | None = None,
    ) -> Iterator[None]:
        """Bind fields for the duration of a ``with`` block."""
        values = {
            "correlation_id": correlation_id,
            "producer": producer,
            "equipment_id": equipment_id,
        }
        tokens = [
            (_context_vars[name], _context_vars[name].set(value))
            for name, value in values.items()
            if value is not None
        ]
        try:
            yield
        finally:
            for var, token in reversed(tokens):
                var.reset(token)


# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "taskName"}


def _json_default(value: Any) -> Any:
    """Serialize dates, enums, Decimals and UUIDs found in ``extra``."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class StructuredFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **LogContext.get_all(),
        }
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRIBUTES:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(self._exception_fields(record))

        return json.dumps(payload, default=_json_default)

    def _exception_fields(self, record: logging.LogRecord) -> dict[str, Any]:
        exc = record.exc_info[1]
        fields: dict[str, Any] = {
            "exc_type": type(exc).__name__,
            "exc_message": str(exc),
            "traceback": self.formatException(record.exc_info),
        }
        # FleetKernelError subclasses carry a code and structured attributes
        code = getattr(exc, "code", None)
        if code is not None:
            fields["exc_code"] = code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
        return fields


def get_logger(name: str) -> logging.Logger:
    """Logger ``fleet_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


_configure_lock = threading.Lock()
_configured = False


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: TextIO | None = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Route the ``fleet_kernel`` tree to one JSON handler.

    ``handler`` wins over ``stream``; with neither, records go to stderr.
    Later calls are no-ops until ``reset_logging``.
    """
    global _configured
    with _configure_lock:
        if _configured:
            return
        _configured = True

    target = handler or logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())

    root = logging.getLogger(LOGGER_ROOT)
    root.setLevel(level)
    root.propagate = False
    root.addHandler(target)


def reset_logging() -> None:
    """Drop all handlers so tests can configure again."""
    global _configured
    with _configure_lock:
        _configured = False
    root = logging.getLogger(LOGGER_ROOT)
    root.handlers.clear()
    root.setLevel(logging.WARNING)
