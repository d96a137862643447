"""
Module: fleet_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    ``fleet_services``.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import fleet_kernel (and sibling engine modules).
    MUST NOT import fleet_config or fleet_services.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The as-of date is an explicit parameter supplied by services.
    - Decimal-only arithmetic: all monetary amounts use ``Decimal``.
    - Determinism: identical inputs (including the category table) always
      produce identical outputs.

Audit relevance:
    Engine entry points are traced via ``@traced_engine`` (see
    ``fleet_engines.tracer``), emitting FLEET_ENGINE_TRACE records.

Usage:
    from fleet_engines import ValuationEngine, RollupAggregator, to_csv

    calculated = ValuationEngine().calculate_many(equipment, table, as_of)
    print(to_csv(RollupAggregator().rollup(calculated_equipment=calculated)))
"""

from fleet_kernel.logging_config import get_logger

logger = get_logger("engines")

from fleet_engines.buy_vs_rent import (
    BreakEvenAnalysis,
    BuyVsRentAnalyzer,
    BuyVsRentInput,
    BuyVsRentResult,
    OwnershipBreakdown,
    Recommendation,
    RentalBasis,
    YearComparison,
    input_from_category,
)
from fleet_engines.cashflow import (
    CashflowProjection,
    CashflowProjectionPoint,
    CashflowProjector,
    CashflowStabilization,
    CashflowStatus,
    EquipmentCashflow,
    PaybackTimeline,
    PaybackTimelinePoint,
    PortfolioCashflow,
    classify_cashflow,
)
from fleet_engines.rollup import (
    RollupAggregator,
    RollupLine,
    RollupResult,
    RollupTotals,
)
from fleet_engines.rollup_csv import to_csv
from fleet_engines.tracer import traced_engine
from fleet_engines.valuation import ValuationEngine

__all__ = [
    # Valuation
    "ValuationEngine",
    # Buy vs rent
    "BreakEvenAnalysis",
    "BuyVsRentAnalyzer",
    "BuyVsRentInput",
    "BuyVsRentResult",
    "OwnershipBreakdown",
    "Recommendation",
    "RentalBasis",
    "YearComparison",
    "input_from_category",
    # Cashflow
    "CashflowProjection",
    "CashflowProjectionPoint",
    "CashflowProjector",
    "CashflowStabilization",
    "CashflowStatus",
    "EquipmentCashflow",
    "PaybackTimeline",
    "PaybackTimelinePoint",
    "PortfolioCashflow",
    "classify_cashflow",
    # Rollup
    "RollupAggregator",
    "RollupLine",
    "RollupResult",
    "RollupTotals",
    "to_csv",
    # Tracing
    "traced_engine",
]
