"""
Values -- Decimal coercion and calendar-month helpers shared by the domain.

Responsibility:
    Normalizes numeric inputs to ``Decimal`` at record construction time and
    provides the whole-month date arithmetic used by financing schedules.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Monetary amounts and percentages are ``Decimal``, never ``float``.
      Ints and strings are converted through ``str`` so no binary
      floating-point artifacts enter the engines.
    - ``add_months`` clamps to the last day of the target month.

Failure modes:
    - ValueError when a value cannot be interpreted as a decimal number.
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Any, field_name: str = "value") -> Decimal:
    """
    Coerce ``value`` to ``Decimal``.

    Raises:
        ValueError: If ``value`` is not a number or numeric string.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid decimal for {field_name}: {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid decimal for {field_name}: {value!r}") from e


def to_optional_decimal(value: Any, field_name: str = "value") -> Decimal | None:
    """Coerce to ``Decimal``, passing ``None`` through."""
    if value is None:
        return None
    return to_decimal(value, field_name)


def add_months(start: date, months: int) -> date:
    """
    Add whole calendar months to a date.

    The day is clamped to the last day of the resulting month, so
    2024-01-31 plus one month is 2024-02-29.
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(start.day, last_day))


def months_between(start: date, end: date) -> int:
    """
    Whole calendar months from ``start`` to ``end``.

    Counts month boundaries only (the day of month is ignored), so
    2024-01-31 to 2024-02-01 is one month.  Negative when ``end`` precedes
    ``start``.
    """
    return (end.year - start.year) * 12 + (end.month - start.month)
