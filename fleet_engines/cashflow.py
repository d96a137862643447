"""
fleet_engines.cashflow -- Financing visibility: outflow vs pricing recovery.

Responsibility:
    Report how an asset's (or the fleet's) financing payments compare with
    the value recovered annually through job pricing: per-asset metrics,
    portfolio summary, a monthly payback timeline and a yearly projection
    to the point where all payments have ended.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Consumes ``EquipmentCalculated`` produced by ``ValuationEngine``.

Invariants enforced:
    - Informational only: nothing here feeds back into cost basis,
      depreciation, buy-vs-rent or rollup figures.
    - Purity: every date-dependent operation takes ``as_of``.
    - Status band: outflow/recovery below 0.9 is surplus, above 1.1 is
      shortfall, anything between (or both zero) is neutral.

Failure modes:
    - None.  Missing financing dates or terms degrade to zero payments and
      no payoff date.

Usage:
    from fleet_engines.cashflow import CashflowProjector

    projector = CashflowProjector()
    summary = projector.portfolio(items=calculated_items, as_of=date(2024, 6, 30))
    print(summary.overall_status)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from fleet_engines.tracer import traced_engine
from fleet_engines.valuation import effective_life
from fleet_kernel.domain.equipment import EquipmentCalculated, FinancingType
from fleet_kernel.domain.values import ZERO, add_months, months_between
from fleet_kernel.logging_config import get_logger

logger = get_logger("engines.cashflow")

MONTHS_PER_YEAR = 12
MIN_TIMELINE_MONTHS = 60
SURPLUS_RATIO = Decimal("0.9")
SHORTFALL_RATIO = Decimal("1.1")


class CashflowStatus(str, Enum):
    SURPLUS = "surplus"
    NEUTRAL = "neutral"
    SHORTFALL = "shortfall"


@dataclass(frozen=True)
class EquipmentCashflow:
    equipment_name: str
    effective_deposit: Decimal
    annual_cash_outflow: Decimal
    payments_completed: int
    total_cash_outlaid_to_date: Decimal
    remaining_payments: int
    remaining_cash_obligations: Decimal
    annual_economic_recovery: Decimal
    annual_surplus_shortfall: Decimal
    cashflow_status: CashflowStatus
    payoff_date: date | None


@dataclass(frozen=True)
class PortfolioCashflow:
    total_annual_recovery: Decimal
    total_annual_payments: Decimal
    net_annual_cashflow: Decimal
    total_deposits: Decimal
    total_remaining_obligations: Decimal
    overall_status: CashflowStatus


@dataclass(frozen=True)
class PaybackTimelinePoint:
    month: int
    cumulative_outlay: Decimal
    cumulative_recovery: Decimal
    net_position: Decimal


@dataclass(frozen=True)
class PaybackTimeline:
    points: tuple[PaybackTimelinePoint, ...]
    payback_month: int | None


@dataclass(frozen=True)
class CashflowProjectionPoint:
    year: int
    date: date
    annual_recovery: Decimal
    annual_payments: Decimal
    net_annual_cashflow: Decimal
    active_payments: int
    events: tuple[str, ...]


@dataclass(frozen=True)
class CashflowStabilization:
    stabilization_date: date | None
    stabilized_net_cashflow: Decimal
    years_until_stabilization: int
    items_with_active_payments: int


@dataclass(frozen=True)
class CashflowProjection:
    points: tuple[CashflowProjectionPoint, ...]
    stabilization: CashflowStabilization


def classify_cashflow(outflow: Decimal, recovery: Decimal) -> CashflowStatus:
    """Place an outflow/recovery pair in the surplus/neutral/shortfall band."""
    if outflow == ZERO and recovery == ZERO:
        return CashflowStatus.NEUTRAL
    ratio = outflow / recovery if recovery > ZERO else Decimal("Infinity")
    if ratio < SURPLUS_RATIO:
        return CashflowStatus.SURPLUS
    if ratio > SHORTFALL_RATIO:
        return CashflowStatus.SHORTFALL
    return CashflowStatus.NEUTRAL


def effective_deposit(calculated: EquipmentCalculated) -> Decimal:
    """Cash paid up front: full cost basis when owned, else the deposit."""
    if calculated.financing_type == FinancingType.OWNED:
        return calculated.total_cost_basis
    return calculated.equipment.deposit_amount


def annual_economic_recovery(calculated: EquipmentCalculated) -> Decimal:
    return calculated.replacement_cost_used / effective_life(calculated.useful_life_used)


def payoff_date(calculated: EquipmentCalculated) -> date | None:
    equipment = calculated.equipment
    if equipment.financing_type == FinancingType.OWNED:
        return None
    if equipment.financing_start_date is None or equipment.term_months <= 0:
        return None
    return add_months(equipment.financing_start_date, equipment.term_months)


def payments_in_year(
    financing_type: FinancingType,
    monthly_payment: Decimal,
    payoff: date | None,
    year: int,
) -> Decimal:
    """
    Payments falling in calendar ``year``, prorated by payoff month.

    Owned assets pay nothing; an open-ended contract (no payoff date) pays
    a full year.
    """
    if financing_type == FinancingType.OWNED:
        return ZERO
    annual = monthly_payment * MONTHS_PER_YEAR
    if payoff is None:
        return annual
    if payoff <= date(year, 1, 1):
        return ZERO
    if payoff >= date(year, 12, 31):
        return annual
    return monthly_payment * payoff.month


class CashflowProjector:
    """
    Pure calculator for financing visibility metrics.

    Contract:
        No I/O, no clock.  ``as_of`` stands in for "now".
    Guarantees:
        - ``portfolio`` and ``projection`` only count Active items.
        - ``timeline`` always covers at least 60 months.
    Non-goals:
        - Does not recommend refinancing, selling or buying.
        - Does not discount future cash.
    """

    @traced_engine("cashflow.per_asset", "1.0", fingerprint_fields=("calculated", "as_of"))
    def per_asset(self, calculated: EquipmentCalculated, as_of: date) -> EquipmentCashflow:
        """Cashflow metrics for one valued asset as of ``as_of``."""
        equipment = calculated.equipment
        monthly = equipment.monthly_payment
        term = equipment.term_months

        deposit = effective_deposit(calculated)
        annual_outflow = monthly * MONTHS_PER_YEAR

        payments_completed = 0
        if equipment.financing_start_date is not None and term > 0:
            elapsed = months_between(equipment.financing_start_date, as_of)
            payments_completed = min(max(0, elapsed), term)

        remaining_payments = max(0, term - payments_completed)
        recovery = annual_economic_recovery(calculated)

        return EquipmentCashflow(
            equipment_name=equipment.name,
            effective_deposit=deposit,
            annual_cash_outflow=annual_outflow,
            payments_completed=payments_completed,
            total_cash_outlaid_to_date=deposit + payments_completed * monthly,
            remaining_payments=remaining_payments,
            remaining_cash_obligations=remaining_payments * monthly + equipment.buyout_amount,
            annual_economic_recovery=recovery,
            annual_surplus_shortfall=recovery - annual_outflow,
            cashflow_status=classify_cashflow(annual_outflow, recovery),
            payoff_date=payoff_date(calculated),
        )

    def portfolio(
        self,
        items: Sequence[EquipmentCalculated],
        as_of: date,
    ) -> PortfolioCashflow:
        """Fleet-level cashflow summary for the calendar year of ``as_of``."""
        active = [item for item in items if item.is_active]
        flows = [self.per_asset(calculated=item, as_of=as_of) for item in active]

        total_recovery = sum((f.annual_economic_recovery for f in flows), ZERO)
        total_payments = sum(
            (
                payments_in_year(item.financing_type, item.monthly_payment, flow.payoff_date, as_of.year)
                for item, flow in zip(active, flows)
            ),
            ZERO,
        )
        result = PortfolioCashflow(
            total_annual_recovery=total_recovery,
            total_annual_payments=total_payments,
            net_annual_cashflow=total_recovery - total_payments,
            total_deposits=sum((f.effective_deposit for f in flows), ZERO),
            total_remaining_obligations=sum((f.remaining_cash_obligations for f in flows), ZERO),
            overall_status=classify_cashflow(total_payments, total_recovery),
        )
        logger.info("portfolio_cashflow_computed", extra={
            "active_count": len(active),
            "total_annual_recovery": str(total_recovery),
            "total_annual_payments": str(total_payments),
            "overall_status": result.overall_status.value,
        })
        return result

    @traced_engine("cashflow.timeline", "1.0", fingerprint_fields=("calculated",))
    def timeline(self, calculated: EquipmentCalculated) -> PaybackTimeline:
        """
        Month-by-month cumulative outlay against cumulative recovery.

        The payback month is the first month after 0 where recovery catches
        up with a non-zero outlay; ``None`` if it never does in the window.
        """
        equipment = calculated.equipment
        term = equipment.term_months
        monthly = equipment.monthly_payment
        deposit = effective_deposit(calculated)
        monthly_recovery = annual_economic_recovery(calculated) / MONTHS_PER_YEAR

        max_months = max(term, calculated.useful_life_used * MONTHS_PER_YEAR, MIN_TIMELINE_MONTHS)
        points: list[PaybackTimelinePoint] = []
        payback_month: int | None = None
        for month in range(max_months + 1):
            outlay = deposit + min(month, term) * monthly
            recovery = month * monthly_recovery
            points.append(PaybackTimelinePoint(
                month=month,
                cumulative_outlay=outlay,
                cumulative_recovery=recovery,
                net_position=recovery - outlay,
            ))
            if payback_month is None and month > 0 and outlay > ZERO and recovery >= outlay:
                payback_month = month

        return PaybackTimeline(points=tuple(points), payback_month=payback_month)

    def projection(
        self,
        items: Sequence[EquipmentCalculated],
        as_of: date,
    ) -> CashflowProjection:
        """
        Yearly projection from ``as_of.year`` until payments have ended.

        Runs to two years past the last payoff, and at least three years.
        """
        active = [item for item in items if item.is_active]
        payoffs = {id(item): payoff_date(item) for item in active}
        financed = [
            item for item in active
            if item.financing_type != FinancingType.OWNED and payoffs[id(item)] is not None
        ]
        total_recovery = sum((annual_economic_recovery(item) for item in active), ZERO)

        current_year = as_of.year
        max_payoff_year = max(
            [current_year] + [payoffs[id(item)].year for item in financed]
        )
        end_year = max(max_payoff_year + 2, current_year + 3)

        points: list[CashflowProjectionPoint] = []
        for year in range(current_year, end_year + 1):
            year_start = date(year, 1, 1)
            year_end = date(year, 12, 31)
            paying = [item for item in financed if payoffs[id(item)] > year_start]
            paying_off = [
                item for item in financed
                if year_start <= payoffs[id(item)] <= year_end
            ]
            payments = sum(
                (
                    payments_in_year(item.financing_type, item.monthly_payment, payoffs[id(item)], year)
                    for item in active
                ),
                ZERO,
            )
            points.append(CashflowProjectionPoint(
                year=year,
                date=year_start,
                annual_recovery=total_recovery,
                annual_payments=payments,
                net_annual_cashflow=total_recovery - payments,
                active_payments=len(paying),
                events=tuple(f"{item.name} paid off" for item in paying_off),
            ))

        future = [payoffs[id(item)] for item in financed if payoffs[id(item)] > as_of]
        latest = max(future) if future else None
        stabilization = CashflowStabilization(
            stabilization_date=latest,
            stabilized_net_cashflow=total_recovery,
            years_until_stabilization=latest.year - current_year if latest else 0,
            items_with_active_payments=len(future),
        )

        logger.info("cashflow_projected", extra={
            "from_year": current_year,
            "to_year": end_year,
            "financed_count": len(financed),
            "stabilization_date": latest,
        })
        return CashflowProjection(points=tuple(points), stabilization=stabilization)
