"""
fleet_engines.tracer -- FLEET_ENGINE_TRACE records for engine entry points.

Responsibility:
    ``@traced_engine`` logs one FLEET_ENGINE_TRACE record per call of a
    decorated engine method: engine name and version, a fingerprint of the
    selected inputs, wall duration, and whether the call returned or
    raised.  Two runs over the same fleet, table and as-of date produce the
    same fingerprints, so a budget export can be matched to the valuation
    calls behind it.

Architecture position:
    Engines -- support module.  Emits log records only and never changes
    arguments or results.

Invariants enforced:
    - Fingerprints cover positional and keyword arguments alike; defaults
      are applied before hashing.
    - Canonical text is independent of dict ordering and of object
      identity (dataclasses are rendered field by field).
    - A raising engine call is traced with ``outcome="error"`` and the
      exception propagates unchanged.

Usage:
    @traced_engine("valuation", "1.0", fingerprint_fields=("equipment", "as_of"))
    def calculate(self, equipment, category_table, as_of):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from datetime import date
from enum import Enum
from typing import Any

_logger = logging.getLogger("fleet_kernel.engines.tracer")

FINGERPRINT_LENGTH = 16


def canonical_text(value: Any) -> str:
    """Stable text form of an engine argument."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return str(value.value)
    if isinstance(value, date):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        body = ",".join(
            f"{f.name}={canonical_text(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
            if f.repr
        )
        return f"{type(value).__name__}({body})"
    if isinstance(value, Mapping):
        body = ",".join(
            f"{key}:{canonical_text(value[key])}" for key in sorted(value, key=str)
        )
        return "{" + body + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(canonical_text(item) for item in value) + "]"
    return str(value)


def input_fingerprint(arguments: Mapping[str, Any], fields: Iterable[str]) -> str:
    """
    SHA-256 prefix over ``name=value`` pairs for ``fields``.

    A field missing from ``arguments`` hashes as ``null``.
    """
    text = "|".join(f"{name}={canonical_text(arguments.get(name))}" for name in fields)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Trace every call of the decorated engine method."""

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = ""
            if fingerprint_fields:
                bound = signature.bind(*args, **kwargs)
                bound.apply_defaults()
                fingerprint = input_fingerprint(bound.arguments, fingerprint_fields)

            trace = {
                "trace_type": "FLEET_ENGINE_TRACE",
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": fingerprint,
                "function": func.__qualname__,
            }
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                trace.update(
                    outcome="error",
                    error_type=type(exc).__name__,
                    error_code=getattr(exc, "code", None),
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                )
                _logger.warning("FLEET_ENGINE_TRACE", extra=trace)
                raise
            trace.update(
                outcome="ok",
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            _logger.info("FLEET_ENGINE_TRACE", extra=trace)
            return result

        return wrapper

    return decorator
