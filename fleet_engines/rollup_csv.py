"""
fleet_engines.rollup_csv -- LMN budget CSV rendering of a RollupResult.

Responsibility:
    Render a ``RollupResult`` as the CSV text the LMN budget templates
    import.  This text is the one bit-exact external contract of the
    engines.

Architecture position:
    Engines -- pure formatting, writes to an in-memory buffer only.

Invariants enforced:
    - Section order: Field Owned, Field Leased, Overhead Owned, Overhead
      Leased.  Leased sections appear only when they have lines; owned
      sections always appear.
    - Each section is a title row, a header row, one row per line and a
      Total row.  A blank row separates sections.
    - Currency and life values are whole numbers rounded half-up toward
      positive infinity (2.5 -> 3, -2.5 -> -2).
    - Rows are joined with ``\\n`` and the text has no trailing newline.
      Values with a comma, quote or newline are quoted with inner quotes
      doubled.
"""

from __future__ import annotations

import csv
import io
from decimal import ROUND_FLOOR, Decimal
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from fleet_engines.rollup import RollupLine, RollupResult, RollupTotals

FIELD_OWNED_TITLE = "FIELD EQUIPMENT - OWNED"
FIELD_LEASED_TITLE = "FIELD EQUIPMENT - LEASED"
OVERHEAD_OWNED_TITLE = "OVERHEAD EQUIPMENT - OWNED"
OVERHEAD_LEASED_TITLE = "OVERHEAD EQUIPMENT - LEASED"

OWNED_HEADER = ("Category", "Qty", "Avg Replacement Value", "Life (Yrs)", "Avg End Value", "Unit")
LEASED_HEADER = ("Category", "Qty", "Monthly Payment", "Life (Yrs)", "Avg End Value", "Unit")

_HALF = Decimal("0.5")


def round_half_up(value: Decimal) -> int:
    """Round to a whole number, halves toward positive infinity."""
    return int((value + _HALF).to_integral_value(rounding=ROUND_FLOOR))


def _owned_row(line: RollupLine) -> list[object]:
    return [
        line.category,
        line.qty,
        round_half_up(line.avg_replacement_value),
        round_half_up(line.avg_useful_life),
        round_half_up(line.avg_end_value),
        line.unit.value,
    ]


def _leased_row(line: RollupLine) -> list[object]:
    return [
        line.category,
        line.qty,
        round_half_up(line.total_monthly_payment / line.qty),
        round_half_up(line.avg_useful_life),
        round_half_up(line.avg_end_value),
        line.unit.value,
    ]


def _write_section(
    writer: Any,
    title: str,
    lines: tuple[RollupLine, ...],
    totals: RollupTotals,
    leased: bool,
) -> None:
    writer.writerow([title])
    if leased:
        writer.writerow(LEASED_HEADER)
        writer.writerows(_leased_row(line) for line in lines)
        writer.writerow(
            ["Total", totals.total_qty, round_half_up(totals.total_monthly_payment), "", "", ""]
        )
    else:
        writer.writerow(OWNED_HEADER)
        writer.writerows(_owned_row(line) for line in lines)
        writer.writerow(["Total", totals.total_qty, "", "", "", ""])


def to_csv(result: RollupResult) -> str:
    """Render ``result`` as LMN budget CSV text."""
    sections = [
        (FIELD_OWNED_TITLE, result.field_owned, result.field_owned_totals, False),
        (FIELD_LEASED_TITLE, result.field_leased, result.field_leased_totals, True),
        (OVERHEAD_OWNED_TITLE, result.overhead_owned, result.overhead_owned_totals, False),
        (OVERHEAD_LEASED_TITLE, result.overhead_leased, result.overhead_leased_totals, True),
    ]
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n", quoting=csv.QUOTE_MINIMAL)
    first = True
    for title, lines, totals, leased in sections:
        if leased and not lines:
            continue
        if not first:
            writer.writerow([])
        _write_section(writer, title, lines, totals, leased)
        first = False
    return buffer.getvalue().removesuffix("\n")
