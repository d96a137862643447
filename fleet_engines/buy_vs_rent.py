"""
fleet_engines.buy_vs_rent -- Ownership vs rental annualized cost comparison.

Responsibility:
    Compare the annual cost of owning a machine (straight-line depreciation
    plus carrying costs) with the cheapest achievable annual rental cost,
    compute break-even usage under each rental rate, and recommend BUY,
    RENT or CLOSE_CALL.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Independent of ``Equipment``: the input is a self-contained
    hypothetical, so unowned machines can be modelled.

Invariants enforced:
    - Optimal-rate selection: the rental cost is the minimum over the usable
      daily, weekly (5 working days) and monthly (22 working days) options.
    - Break-even priority: the primary break-even is taken from the monthly
      rate when present, else weekly, else daily, regardless of which is
      numerically smallest.
    - Buffer zone: when |own - rent| / max(own, rent) <= 0.15 the
      recommendation is CLOSE_CALL.
    - Break-even monotonicity: break-even days grow with ownership cost.

Failure modes:
    - BreakEvenUndefinedError when no rental rate is greater than zero.

Usage:
    from fleet_engines.buy_vs_rent import BuyVsRentAnalyzer, BuyVsRentInput

    result = BuyVsRentAnalyzer().analyze(
        rent_input=BuyVsRentInput(
            purchase_price=Decimal("40000"),
            useful_life=5,
            resale_value=Decimal("8000"),
            rental_rate_daily=Decimal("300"),
            usage_days_per_year=60,
            annual_maintenance=Decimal("2000"),
            annual_insurance=Decimal("800"),
        ),
    )
    print(result.recommendation)  # Recommendation.BUY
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from fleet_engines.tracer import traced_engine
from fleet_engines.valuation import effective_life
from fleet_kernel.domain.categories import CategoryDefaultsTable
from fleet_kernel.domain.values import HUNDRED, ZERO, to_decimal, to_optional_decimal
from fleet_kernel.exceptions import BreakEvenUndefinedError
from fleet_kernel.logging_config import get_logger

logger = get_logger("engines.buy_vs_rent")

WORKING_DAYS_PER_WEEK = 5
WORKING_DAYS_PER_MONTH = 22
CLOSE_CALL_BUFFER = Decimal("0.15")


class Recommendation(str, Enum):
    BUY = "BUY"
    RENT = "RENT"
    CLOSE_CALL = "CLOSE_CALL"


class RentalBasis(str, Enum):
    """Rental rate granularity."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


# Highest granularity first
BREAK_EVEN_PRIORITY: tuple[RentalBasis, ...] = (
    RentalBasis.MONTHLY,
    RentalBasis.WEEKLY,
    RentalBasis.DAILY,
)

_DAYS_PER_PERIOD = {
    RentalBasis.DAILY: 1,
    RentalBasis.WEEKLY: WORKING_DAYS_PER_WEEK,
    RentalBasis.MONTHLY: WORKING_DAYS_PER_MONTH,
}


@dataclass(frozen=True)
class BuyVsRentInput:
    """
    A hypothetical purchase to weigh against renting.

    Rates that are ``None`` or zero are treated as unavailable.
    """

    purchase_price: Decimal
    useful_life: int
    resale_value: Decimal
    usage_days_per_year: int
    annual_maintenance: Decimal = ZERO
    annual_insurance: Decimal = ZERO
    rental_rate_daily: Decimal | None = None
    rental_rate_weekly: Decimal | None = None
    rental_rate_monthly: Decimal | None = None
    annual_storage: Decimal = ZERO
    annual_operating: Decimal = ZERO
    category: str | None = None
    description: str = ""

    def __post_init__(self) -> None:
        for name in (
            "purchase_price", "resale_value", "annual_maintenance",
            "annual_insurance", "annual_storage", "annual_operating",
        ):
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))
        for name in ("rental_rate_daily", "rental_rate_weekly", "rental_rate_monthly"):
            object.__setattr__(self, name, to_optional_decimal(getattr(self, name), name))
        object.__setattr__(self, "useful_life", int(self.useful_life))
        object.__setattr__(self, "usage_days_per_year", int(self.usage_days_per_year))

    def rate_for(self, basis: RentalBasis) -> Decimal | None:
        """The rate for ``basis`` if it is usable (present and > 0)."""
        rate = {
            RentalBasis.DAILY: self.rental_rate_daily,
            RentalBasis.WEEKLY: self.rental_rate_weekly,
            RentalBasis.MONTHLY: self.rental_rate_monthly,
        }[basis]
        if rate is None or rate <= ZERO:
            return None
        return rate


@dataclass(frozen=True)
class OwnershipBreakdown:
    depreciation: Decimal
    maintenance: Decimal
    insurance: Decimal
    storage: Decimal = ZERO
    operating: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.depreciation + self.maintenance + self.insurance + self.storage + self.operating


@dataclass(frozen=True)
class BreakEvenAnalysis:
    """
    Usage days per year at which owning and renting cost the same.

    ``None`` for a basis means that rate was not supplied.  Only the
    primary value is displayed downstream.
    """

    daily_days: Decimal | None
    weekly_days: Decimal | None
    monthly_days: Decimal | None
    primary_basis: RentalBasis

    def days_for(self, basis: RentalBasis) -> Decimal | None:
        return {
            RentalBasis.DAILY: self.daily_days,
            RentalBasis.WEEKLY: self.weekly_days,
            RentalBasis.MONTHLY: self.monthly_days,
        }[basis]

    @property
    def primary_days(self) -> Decimal:
        days = self.days_for(self.primary_basis)
        assert days is not None, "primary basis must have a break-even value"
        return days


@dataclass(frozen=True)
class YearComparison:
    year: int
    own_cumulative: Decimal
    rent_cumulative: Decimal
    savings: Decimal  # positive = buying saves money


@dataclass(frozen=True)
class BuyVsRentResult:
    annual_ownership_cost: Decimal
    ownership_breakdown: OwnershipBreakdown
    annual_rental_cost: Decimal
    rental_basis: RentalBasis
    break_even: BreakEvenAnalysis
    percent_difference: Decimal
    recommendation: Recommendation
    annual_savings: Decimal
    total_savings_over_life: Decimal
    year_by_year_comparison: tuple[YearComparison, ...]

    @property
    def break_even_days(self) -> Decimal:
        """The primary break-even day count."""
        return self.break_even.primary_days


def recommend(
    annual_ownership_cost: Decimal,
    annual_rental_cost: Decimal,
) -> tuple[Recommendation, Decimal]:
    """
    Recommendation and percent difference for an own/rent cost pair.

    Within the 15% buffer the answer is CLOSE_CALL even when one option is
    technically cheaper.
    """
    larger = max(annual_ownership_cost, annual_rental_cost)
    if larger <= ZERO:
        return Recommendation.CLOSE_CALL, ZERO
    percent_difference = abs(annual_ownership_cost - annual_rental_cost) / larger
    if percent_difference <= CLOSE_CALL_BUFFER:
        return Recommendation.CLOSE_CALL, percent_difference
    if annual_ownership_cost < annual_rental_cost:
        return Recommendation.BUY, percent_difference
    return Recommendation.RENT, percent_difference


class BuyVsRentAnalyzer:
    """
    Pure calculator for buy-vs-rent economics.

    Contract:
        No I/O, fully deterministic.
    Guarantees:
        - ``analyze`` returns a result for any input with at least one
          usable rental rate.
        - The year-by-year table has one row per year of (effective) life.
    Non-goals:
        - Does not discount future cash (no time value of money).
    """

    @staticmethod
    def rental_cost(days: int, rate: Decimal, basis: RentalBasis) -> Decimal:
        """Annual cost of ``days`` usage renting whole periods of ``basis``."""
        per_period = _DAYS_PER_PERIOD[basis]
        periods = math.ceil(days / per_period) if days > 0 else 0
        return rate * periods

    def optimal_rental_cost(self, rent_input: BuyVsRentInput) -> tuple[Decimal, RentalBasis]:
        """
        Cheapest achievable annual rental cost and the basis that gives it.

        Ties resolve to the finer granularity (daily before weekly before
        monthly).

        Raises:
            BreakEvenUndefinedError: if no rate is usable.
        """
        options: list[tuple[Decimal, RentalBasis]] = []
        for basis in (RentalBasis.DAILY, RentalBasis.WEEKLY, RentalBasis.MONTHLY):
            rate = rent_input.rate_for(basis)
            if rate is not None:
                options.append(
                    (self.rental_cost(rent_input.usage_days_per_year, rate, basis), basis)
                )
        if not options:
            raise BreakEvenUndefinedError(
                str(rent_input.purchase_price), rent_input.description or None,
            )
        return min(options, key=lambda option: option[0])

    @staticmethod
    def break_even(
        annual_ownership_cost: Decimal,
        rent_input: BuyVsRentInput,
    ) -> BreakEvenAnalysis:
        """
        Break-even days under each usable rate, and the primary pick.

        Raises:
            BreakEvenUndefinedError: if no rate is usable.
        """
        days: dict[RentalBasis, Decimal | None] = {}
        for basis, per_period in _DAYS_PER_PERIOD.items():
            rate = rent_input.rate_for(basis)
            if rate is None:
                days[basis] = None
            else:
                effective_daily_rate = rate / per_period
                days[basis] = annual_ownership_cost / effective_daily_rate

        primary = next((b for b in BREAK_EVEN_PRIORITY if days[b] is not None), None)
        if primary is None:
            raise BreakEvenUndefinedError(
                str(rent_input.purchase_price), rent_input.description or None,
            )
        return BreakEvenAnalysis(
            daily_days=days[RentalBasis.DAILY],
            weekly_days=days[RentalBasis.WEEKLY],
            monthly_days=days[RentalBasis.MONTHLY],
            primary_basis=primary,
        )

    @traced_engine("buy_vs_rent", "1.0", fingerprint_fields=("rent_input",))
    def analyze(self, rent_input: BuyVsRentInput) -> BuyVsRentResult:
        """
        Run the full comparison.

        Raises:
            BreakEvenUndefinedError: if daily, weekly and monthly rates are
                all absent or zero.
        """
        life = effective_life(rent_input.useful_life)
        depreciation = (rent_input.purchase_price - rent_input.resale_value) / life
        breakdown = OwnershipBreakdown(
            depreciation=depreciation,
            maintenance=rent_input.annual_maintenance,
            insurance=rent_input.annual_insurance,
            storage=rent_input.annual_storage,
            operating=rent_input.annual_operating,
        )
        annual_ownership_cost = breakdown.total

        annual_rental_cost, rental_basis = self.optimal_rental_cost(rent_input)
        break_even = self.break_even(annual_ownership_cost, rent_input)
        recommendation, percent_difference = recommend(
            annual_ownership_cost, annual_rental_cost,
        )

        annual_savings = abs(annual_ownership_cost - annual_rental_cost)
        comparison = tuple(
            YearComparison(
                year=year,
                own_cumulative=annual_ownership_cost * year,
                rent_cumulative=annual_rental_cost * year,
                savings=(annual_rental_cost - annual_ownership_cost) * year,
            )
            for year in range(1, life + 1)
        )

        result = BuyVsRentResult(
            annual_ownership_cost=annual_ownership_cost,
            ownership_breakdown=breakdown,
            annual_rental_cost=annual_rental_cost,
            rental_basis=rental_basis,
            break_even=break_even,
            percent_difference=percent_difference,
            recommendation=recommendation,
            annual_savings=annual_savings,
            total_savings_over_life=annual_savings * life,
            year_by_year_comparison=comparison,
        )

        logger.info("buy_vs_rent_analyzed", extra={
            "category": rent_input.category,
            "annual_ownership_cost": str(annual_ownership_cost),
            "annual_rental_cost": str(annual_rental_cost),
            "rental_basis": rental_basis.value,
            "break_even_basis": break_even.primary_basis.value,
            "break_even_days": str(break_even.primary_days),
            "recommendation": recommendation.value,
        })
        return result


def input_from_category(
    category_table: CategoryDefaultsTable,
    category: str,
    purchase_price: Decimal,
    usage_days_per_year: int,
    rental_rate_daily: Decimal | None = None,
    rental_rate_weekly: Decimal | None = None,
    rental_rate_monthly: Decimal | None = None,
    description: str = "",
) -> BuyVsRentInput:
    """
    Prefill a ``BuyVsRentInput`` from a category's defaults.

    Useful life comes from the category; resale value, maintenance and
    insurance are the category percentages applied to the purchase price.
    """
    defaults = category_table.lookup(category)
    price = to_decimal(purchase_price, "purchase_price")
    return BuyVsRentInput(
        category=category,
        description=description,
        purchase_price=price,
        useful_life=defaults.default_useful_life,
        resale_value=price * defaults.default_resale_percent / HUNDRED,
        annual_maintenance=price * defaults.maintenance_percent / HUNDRED,
        annual_insurance=price * defaults.insurance_percent / HUNDRED,
        rental_rate_daily=rental_rate_daily,
        rental_rate_weekly=rental_rate_weekly,
        rental_rate_monthly=rental_rate_monthly,
        usage_days_per_year=usage_days_per_year,
    )
