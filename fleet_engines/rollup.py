"""
fleet_engines.rollup -- Budget rollup of valued equipment into LMN lines.

Responsibility:
    Group active valued equipment by (category, recovery method), build one
    aggregated line per group, and partition the lines into field vs
    overhead and owned vs leased sections with totals.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Output is rendered to text by ``fleet_engines.rollup_csv``.

Invariants enforced:
    - Only Active items are counted.
    - Field means ``allocation_type == operational``; overhead_only and
      owner_perk both roll up as overhead.
    - Grouping is a single pass into a read-only mapping, followed by a
      separate line-builder pass.
    - Total consistency: every totals figure is the sum of the
      corresponding line figures, never recomputed from raw items.
    - Lines are ordered by category, then recovery method.

Failure modes:
    - None.  An empty input yields empty sections with zero totals.

Usage:
    from fleet_engines.rollup import RollupAggregator

    result = RollupAggregator().rollup(calculated_equipment=calculated)
    for line in result.field_owned:
        print(line.category, line.qty)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from functools import reduce
from types import MappingProxyType

from fleet_engines import rollup_csv
from fleet_engines.tracer import traced_engine
from fleet_engines.valuation import effective_life
from fleet_kernel.domain.categories import UsageUnit
from fleet_kernel.domain.equipment import EquipmentCalculated, RecoveryMethod
from fleet_kernel.domain.values import ZERO
from fleet_kernel.logging_config import get_logger

logger = get_logger("engines.rollup")

GroupKey = tuple[str, RecoveryMethod]


@dataclass(frozen=True)
class RollupLine:
    """One budget line: every active asset sharing a category and recovery method."""

    category: str
    recovery_method: RecoveryMethod
    item_names: tuple[str, ...]
    qty: int
    avg_replacement_value: Decimal
    avg_useful_life: Decimal
    avg_end_value: Decimal
    total_annual_recovery: Decimal
    total_cogs: Decimal
    total_overhead: Decimal
    total_monthly_payment: Decimal
    unit: UsageUnit


@dataclass(frozen=True)
class RollupTotals:
    total_qty: int = 0
    total_annual_recovery: Decimal = ZERO
    total_cogs: Decimal = ZERO
    total_overhead: Decimal = ZERO
    total_monthly_payment: Decimal = ZERO

    def __add__(self, other: RollupTotals) -> RollupTotals:
        return RollupTotals(
            total_qty=self.total_qty + other.total_qty,
            total_annual_recovery=self.total_annual_recovery + other.total_annual_recovery,
            total_cogs=self.total_cogs + other.total_cogs,
            total_overhead=self.total_overhead + other.total_overhead,
            total_monthly_payment=self.total_monthly_payment + other.total_monthly_payment,
        )


@dataclass(frozen=True)
class RollupResult:
    field_owned: tuple[RollupLine, ...]
    field_leased: tuple[RollupLine, ...]
    overhead_owned: tuple[RollupLine, ...]
    overhead_leased: tuple[RollupLine, ...]
    field_owned_totals: RollupTotals
    field_leased_totals: RollupTotals
    overhead_owned_totals: RollupTotals
    overhead_leased_totals: RollupTotals
    field_totals: RollupTotals
    overhead_totals: RollupTotals

    @property
    def all_lines(self) -> tuple[RollupLine, ...]:
        return self.field_owned + self.field_leased + self.overhead_owned + self.overhead_leased


def group_items(
    items: Iterable[EquipmentCalculated],
) -> Mapping[GroupKey, tuple[EquipmentCalculated, ...]]:
    """
    Read-only (category, recovery method) -> items mapping.

    One pass over ``items``; groups and their members keep input order.
    """
    groups: dict[GroupKey, list[EquipmentCalculated]] = {}
    for item in items:
        groups.setdefault((item.category, item.recovery_method), []).append(item)
    return MappingProxyType({key: tuple(members) for key, members in groups.items()})


def build_line(key: GroupKey, items: Sequence[EquipmentCalculated]) -> RollupLine:
    """Aggregate one group into a line (``items`` must be non-empty)."""
    category, recovery_method = key
    qty = len(items)

    def total(values: Iterable[Decimal]) -> Decimal:
        return sum(values, ZERO)

    return RollupLine(
        category=category,
        recovery_method=recovery_method,
        item_names=tuple(item.name for item in items),
        qty=qty,
        avg_replacement_value=total(i.replacement_cost_used for i in items) / qty,
        avg_useful_life=Decimal(sum(i.useful_life_used for i in items)) / qty,
        avg_end_value=total(i.expected_resale_used for i in items) / qty,
        total_annual_recovery=total(
            (i.replacement_cost_used - i.expected_resale_used) / effective_life(i.useful_life_used)
            for i in items
        ),
        total_cogs=total(i.cogs_allocated_cost for i in items),
        total_overhead=total(i.overhead_allocated_cost for i in items),
        total_monthly_payment=total(i.monthly_payment for i in items),
        unit=items[0].unit,
    )


def build_lines(items: Iterable[EquipmentCalculated]) -> tuple[RollupLine, ...]:
    """Group, build and sort lines by (category, recovery method)."""
    groups = group_items(items)
    return tuple(
        build_line(key, groups[key])
        for key in sorted(groups, key=lambda k: (k[0], k[1].value))
    )


def compute_totals(lines: Iterable[RollupLine]) -> RollupTotals:
    """Sum line aggregates."""
    return reduce(
        lambda acc, line: acc + RollupTotals(
            total_qty=line.qty,
            total_annual_recovery=line.total_annual_recovery,
            total_cogs=line.total_cogs,
            total_overhead=line.total_overhead,
            total_monthly_payment=line.total_monthly_payment,
        ),
        lines,
        RollupTotals(),
    )


class RollupAggregator:
    """
    Pure aggregator producing the LMN budget rollup.

    Contract:
        Input is already valued; no category lookups happen here.
    Guarantees:
        - ``sum(line.x) == totals.x`` for every section and figure.
        - Deterministic line order.
    Non-goals:
        - Does not round; rounding is a presentation concern of the CSV
          export.
    """

    @traced_engine("rollup", "1.0", fingerprint_fields=("calculated_equipment",))
    def rollup(self, calculated_equipment: Sequence[EquipmentCalculated]) -> RollupResult:
        active = [item for item in calculated_equipment if item.is_active]

        def section(is_field: bool, method: RecoveryMethod) -> tuple[RollupLine, ...]:
            return build_lines(
                item for item in active
                if item.is_field == is_field and item.recovery_method == method
            )

        field_owned = section(True, RecoveryMethod.OWNED)
        field_leased = section(True, RecoveryMethod.LEASED)
        overhead_owned = section(False, RecoveryMethod.OWNED)
        overhead_leased = section(False, RecoveryMethod.LEASED)

        field_owned_totals = compute_totals(field_owned)
        field_leased_totals = compute_totals(field_leased)
        overhead_owned_totals = compute_totals(overhead_owned)
        overhead_leased_totals = compute_totals(overhead_leased)

        result = RollupResult(
            field_owned=field_owned,
            field_leased=field_leased,
            overhead_owned=overhead_owned,
            overhead_leased=overhead_leased,
            field_owned_totals=field_owned_totals,
            field_leased_totals=field_leased_totals,
            overhead_owned_totals=overhead_owned_totals,
            overhead_leased_totals=overhead_leased_totals,
            field_totals=field_owned_totals + field_leased_totals,
            overhead_totals=overhead_owned_totals + overhead_leased_totals,
        )

        logger.info("rollup_completed", extra={
            "input_count": len(calculated_equipment),
            "active_count": len(active),
            "line_count": len(result.all_lines),
            "field_qty": result.field_totals.total_qty,
            "overhead_qty": result.overhead_totals.total_qty,
        })
        return result

    def to_csv(self, result: RollupResult) -> str:
        """Render ``result`` as the LMN budget CSV (see ``fleet_engines.rollup_csv``)."""
        return rollup_csv.to_csv(result)
