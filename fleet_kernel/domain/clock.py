"""
Clock -- Deterministic time abstraction.

Responsibility:
    Provides an injectable clock interface so that domain, engine, and service
    code never call ``datetime.now()`` or ``date.today()`` directly.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).

Invariants enforced:
    Engines receive an explicit ``as_of`` date.  Services obtain it from the
    injected clock via ``today()``, so identical clock settings reproduce
    byte-identical valuations and exports.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timezone


class Clock(ABC):
    """
    Source of the as-of date for service calls.

    Contract:
        Injected into ``FleetAnalysisService``.  Engines never hold a clock;
        they receive the ``today()`` value as ``as_of``.

    Guarantees:
        - ``now()`` is timezone-aware.
        - ``today()`` is the calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC; the only reader of the system clock."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock pinned to one instant.

    Used by tests and to re-run a valuation or export as of a past date.

    Guarantees:
        - ``now()`` returns the same value on every call.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    @classmethod
    def on(cls, as_of: date) -> "DeterministicClock":
        """Clock pinned to noon UTC on ``as_of``."""
        return cls(datetime(as_of.year, as_of.month, as_of.day, 12, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._fixed_time
