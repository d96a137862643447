"""
fleet_services.fleet_analysis_service -- One-stop fleet valuation, budget and cashflow service.

Responsibility:
    Wire the category defaults table and a clock into the pure engines so
    callers can value a fleet, build and export the LMN budget rollup,
    compare buy vs rent and review financing cashflow without handling
    as-of dates or configuration themselves.

Architecture position:
    Services -- orchestration over engines + kernel + config.
    The clock is read here, once per call, and the resulting as-of date is
    passed explicitly into every engine.

Invariants enforced:
    - Engines never see the clock or the config loader; both are resolved
      here.
    - One as-of date per call: every engine invoked by a single service
      method sees the same date.

Failure modes:
    - BreakEvenUndefinedError from ``buy_vs_rent`` when no rental rate is
      usable.
    - Config errors from ``get_category_table`` when no table is injected
      and the shipped YAML cannot be read.

Usage:
    from fleet_kernel.domain.clock import SystemClock
    from fleet_services import FleetAnalysisService

    service = FleetAnalysisService(clock=SystemClock())
    csv_text = service.export_budget_csv(equipment=fleet)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import uuid4

from fleet_config import get_category_table
from fleet_engines.buy_vs_rent import (
    BuyVsRentAnalyzer,
    BuyVsRentInput,
    BuyVsRentResult,
    input_from_category,
)
from fleet_engines.cashflow import (
    CashflowProjection,
    CashflowProjector,
    EquipmentCashflow,
    PaybackTimeline,
    PortfolioCashflow,
)
from fleet_engines.rollup import RollupAggregator, RollupResult
from fleet_engines.rollup_csv import to_csv
from fleet_engines.valuation import ValuationEngine
from fleet_kernel.domain.categories import CategoryDefaults, CategoryDefaultsTable
from fleet_kernel.domain.clock import Clock, SystemClock
from fleet_kernel.domain.equipment import (
    Equipment,
    EquipmentCalculated,
    EquipmentExportRecord,
)
from fleet_kernel.domain.values import ZERO, to_decimal
from fleet_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.fleet_analysis")


@dataclass(frozen=True)
class FleetCashflowOverview:
    """Everything the cashflow view needs for one as-of date."""

    per_asset: tuple[EquipmentCashflow, ...]
    portfolio: PortfolioCashflow
    projection: CashflowProjection


class FleetAnalysisService:
    """
    Orchestrates valuation, rollup, buy-vs-rent and cashflow.

    Contract:
        Holds no mutable state beyond its injected collaborators.  Each
        public method values its input afresh.
    Guarantees:
        - Identical input with the same clock reading and table produces
          identical output.
    Non-goals:
        - No persistence: equipment is passed in, results are returned.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        category_table: CategoryDefaultsTable | None = None,
        annual_inflation_rate: Decimal = ZERO,
    ):
        self._clock = clock or SystemClock()
        if category_table is None:
            category_table = get_category_table()
        self._category_table = category_table
        self._annual_inflation_rate = to_decimal(annual_inflation_rate, "annual_inflation_rate")
        self._valuation = ValuationEngine()
        self._buy_vs_rent = BuyVsRentAnalyzer()
        self._cashflow = CashflowProjector()
        self._rollup = RollupAggregator()

    @property
    def category_table(self) -> CategoryDefaultsTable:
        return self._category_table

    def with_category_overrides(
        self,
        overrides: Sequence[CategoryDefaults],
    ) -> FleetAnalysisService:
        """A new service whose table has ``overrides`` applied."""
        return FleetAnalysisService(
            clock=self._clock,
            category_table=self._category_table.with_overrides(overrides),
            annual_inflation_rate=self._annual_inflation_rate,
        )

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    def value_equipment(self, equipment: Equipment) -> EquipmentCalculated:
        with LogContext.bind(equipment_id=equipment.id, producer="fleet_analysis"):
            return self._valuation.calculate(
                equipment=equipment,
                category_table=self._category_table,
                as_of=self._clock.today(),
                annual_inflation_rate=self._annual_inflation_rate,
            )

    def value_fleet(self, equipment: Sequence[Equipment]) -> tuple[EquipmentCalculated, ...]:
        with LogContext.bind(correlation_id=str(uuid4()), producer="fleet_analysis"):
            return self._value_fleet(equipment)

    def _value_fleet(
        self,
        equipment: Sequence[Equipment],
        as_of: date | None = None,
    ) -> tuple[EquipmentCalculated, ...]:
        return self._valuation.calculate_many(
            equipment,
            self._category_table,
            as_of or self._clock.today(),
            annual_inflation_rate=self._annual_inflation_rate,
        )

    def export_records(
        self,
        equipment: Sequence[Equipment],
        attachment_totals: Mapping[str, Decimal] | None = None,
    ) -> tuple[EquipmentExportRecord, ...]:
        """
        Per-item LMN equipment export rows.

        ``attachment_totals`` maps equipment id to the summed value of its
        attachments; items without an entry carry no attachment value.
        """
        attachments = attachment_totals or {}
        with LogContext.bind(correlation_id=str(uuid4()), producer="fleet_analysis"):
            return tuple(
                self._valuation.to_export_record(
                    calculated,
                    attachment_total=attachments.get(calculated.equipment.id or "", ZERO),
                )
                for calculated in self._value_fleet(equipment)
            )

    # ------------------------------------------------------------------
    # Budget rollup
    # ------------------------------------------------------------------

    def budget_rollup(self, equipment: Sequence[Equipment]) -> RollupResult:
        with LogContext.bind(correlation_id=str(uuid4()), producer="fleet_analysis"):
            return self._rollup.rollup(calculated_equipment=self._value_fleet(equipment))

    def export_budget_csv(self, equipment: Sequence[Equipment]) -> str:
        """Value, roll up and render the LMN budget CSV in one call."""
        with LogContext.bind(correlation_id=str(uuid4()), producer="fleet_analysis"):
            result = self._rollup.rollup(calculated_equipment=self._value_fleet(equipment))
            text = to_csv(result)
            logger.info("budget_csv_exported", extra={
                "line_count": len(result.all_lines),
                "byte_count": len(text.encode("utf-8")),
            })
            return text

    # ------------------------------------------------------------------
    # Buy vs rent
    # ------------------------------------------------------------------

    def buy_vs_rent(self, rent_input: BuyVsRentInput) -> BuyVsRentResult:
        return self._buy_vs_rent.analyze(rent_input=rent_input)

    def buy_vs_rent_for_category(
        self,
        category: str,
        purchase_price: Decimal,
        usage_days_per_year: int,
        rental_rate_daily: Decimal | None = None,
        rental_rate_weekly: Decimal | None = None,
        rental_rate_monthly: Decimal | None = None,
    ) -> BuyVsRentResult:
        """Buy-vs-rent with life, resale, maintenance and insurance from the category."""
        rent_input = input_from_category(
            self._category_table,
            category,
            purchase_price,
            usage_days_per_year,
            rental_rate_daily=rental_rate_daily,
            rental_rate_weekly=rental_rate_weekly,
            rental_rate_monthly=rental_rate_monthly,
        )
        return self._buy_vs_rent.analyze(rent_input=rent_input)

    # ------------------------------------------------------------------
    # Cashflow
    # ------------------------------------------------------------------

    def cashflow_overview(self, equipment: Sequence[Equipment]) -> FleetCashflowOverview:
        with LogContext.bind(correlation_id=str(uuid4()), producer="fleet_analysis"):
            as_of = self._clock.today()
            calculated = self._value_fleet(equipment, as_of)
            return FleetCashflowOverview(
                per_asset=tuple(
                    self._cashflow.per_asset(calculated=item, as_of=as_of)
                    for item in calculated
                ),
                portfolio=self._cashflow.portfolio(calculated, as_of),
                projection=self._cashflow.projection(calculated, as_of),
            )

    def payback_timeline(self, equipment: Equipment) -> PaybackTimeline:
        return self._cashflow.timeline(calculated=self.value_equipment(equipment))
