"""
Categories -- Per-category depreciation assumptions and the lookup table.

Responsibility:
    Defines ``CategoryDefaults`` (one row of assumptions: useful life,
    resale percent, maintenance and insurance percent, usage unit) and
    ``CategoryDefaultsTable``, the immutable reference table every engine
    call receives explicitly.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Loaded from YAML by ``fleet_config``; never a module-level singleton.

Invariants enforced:
    - One row per category key.
    - The fallback category is present in the table.
    - ``lookup`` never raises for an unknown key: it returns the fallback
      row.  This is a deliberate policy so that one mis-keyed record cannot
      break a valuation run.

Failure modes:
    - CategoryTableError on construction with no rows, duplicate keys, or a
      fallback key that is not in the table.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from fleet_kernel.domain.values import to_decimal
from fleet_kernel.exceptions import CategoryTableError


class UsageUnit(str, Enum):
    """How usage of a category is metered in budget templates."""

    HOURS = "Hours"
    DAYS = "Days"


@dataclass(frozen=True)
class CategoryDefaults:
    """
    Assumptions for one equipment category.

    Contract:
        Frozen dataclass.  Percentages are on a 0-100 scale.
    Guarantees:
        - All percentages are ``Decimal`` after construction.
    Non-goals:
        - Does not clamp percentages; out-of-range values flow through.
    """

    category: str
    default_useful_life: int
    default_resale_percent: Decimal
    maintenance_percent: Decimal = Decimal("0")
    insurance_percent: Decimal = Decimal("0")
    unit: UsageUnit = UsageUnit.HOURS
    notes: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "default_useful_life", int(self.default_useful_life))
        for name in ("default_resale_percent", "maintenance_percent", "insurance_percent"):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))
        if not isinstance(self.unit, UsageUnit):
            object.__setattr__(self, "unit", UsageUnit(self.unit))


@dataclass(frozen=True)
class CategoryDefaultsTable:
    """
    Immutable category lookup table with a last-resort fallback row.

    Contract:
        Rows keep their declared order.  ``fallback_category`` defaults to
        the key of the last row.
    Guarantees:
        - ``lookup`` returns exactly one row for any key.
        - ``with_overrides`` returns a new table; ``self`` is unchanged.
    """

    rows: tuple[CategoryDefaults, ...]
    fallback_category: str | None = None
    _index: dict[str, CategoryDefaults] = field(
        init=False, repr=False, compare=False, hash=False,
    )

    def __post_init__(self) -> None:
        rows = tuple(self.rows)
        if not rows:
            raise CategoryTableError("table has no rows")
        object.__setattr__(self, "rows", rows)

        index: dict[str, CategoryDefaults] = {}
        for row in rows:
            if row.category in index:
                raise CategoryTableError("duplicate category", row.category)
            index[row.category] = row
        object.__setattr__(self, "_index", index)

        fallback = self.fallback_category
        if fallback is None:
            object.__setattr__(self, "fallback_category", rows[-1].category)
        elif fallback not in index:
            raise CategoryTableError("fallback category not in table", fallback)

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[CategoryDefaults]:
        return iter(self.rows)

    def __contains__(self, category: object) -> bool:
        return category in self._index

    @property
    def categories(self) -> tuple[str, ...]:
        return tuple(row.category for row in self.rows)

    @property
    def fallback(self) -> CategoryDefaults:
        """The last-resort row used for unrecognized keys."""
        return self._index[self.fallback_category]

    def lookup(self, category: str) -> CategoryDefaults:
        """Row for ``category``, or the fallback row if the key is unknown."""
        return self._index.get(category, self.fallback)

    def with_overrides(
        self,
        overrides: Iterable[CategoryDefaults],
    ) -> CategoryDefaultsTable:
        """
        Return a table where ``overrides`` replace rows by category key.

        Override rows for keys not in this table are appended.  The fallback
        key is unchanged, so unknown categories still resolve to this
        table's last-resort row (or its override).
        """
        replacements = {row.category: row for row in overrides}
        merged = [replacements.pop(row.category, row) for row in self.rows]
        merged.extend(replacements.values())
        return CategoryDefaultsTable(
            rows=tuple(merged),
            fallback_category=self.fallback_category,
        )
