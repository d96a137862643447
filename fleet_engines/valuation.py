"""
fleet_engines.valuation -- Per-asset cost basis, allocation, life and resale.

Responsibility:
    Derive an ``EquipmentCalculated`` from an ``Equipment`` record, the
    category defaults table and an as-of date: total cost basis, the
    COGS/overhead split, useful life, end-of-life year, years left,
    replacement cost, expected resale, ROI on disposal, and the recovery
    method used for budget rollups.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import fleet_kernel domain types and sibling engine modules.

Invariants enforced:
    - Purity: the as-of date is a parameter; no clock access.
    - Financing separation: cost basis, allocation, life and resale never
      read financing fields.  Only ``recovery_method`` looks at
      ``financing_type``, and it is a budget-grouping tag, not a value.
    - Cost basis additivity: total_cost_basis is the literal sum of
      purchase price, sales tax, freight/setup and other capex.
    - Years-left floor: estimated_years_left >= 0.

Failure modes:
    - None for numeric input.  Negative amounts flow through the sums,
      useful life <= 0 is treated as 1 wherever it divides, and an unknown
      category resolves to the table's fallback row.

Usage:
    from fleet_engines.valuation import ValuationEngine

    engine = ValuationEngine()
    calculated = engine.calculate(
        equipment=equipment,
        category_table=table,
        as_of=date(2024, 6, 30),
    )
    print(calculated.total_cost_basis)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date
from decimal import Decimal

from fleet_engines.tracer import traced_engine
from fleet_kernel.domain.categories import CategoryDefaultsTable
from fleet_kernel.domain.equipment import (
    Equipment,
    EquipmentCalculated,
    EquipmentExportRecord,
    EquipmentStatus,
    FinancingType,
    RecoveryMethod,
    ReplacementCostSource,
)
from fleet_kernel.domain.values import HUNDRED, ONE, ZERO, to_decimal
from fleet_kernel.logging_config import get_logger

logger = get_logger("engines.valuation")


def effective_life(useful_life: int) -> int:
    """Useful life safe for division: anything below one year counts as one."""
    return max(useful_life, 1)


def resolve_recovery_method(equipment: Equipment) -> RecoveryMethod:
    """
    Budget-rollup treatment for an asset.

    Leased only when the asset is literally leased AND the owner opted in
    to lease-style recovery via ``lmn_recovery_method``.  A leased asset
    without the flag rolls up as owned.
    """
    if (
        equipment.financing_type == FinancingType.LEASED
        and equipment.lmn_recovery_method == RecoveryMethod.LEASED
    ):
        return RecoveryMethod.LEASED
    return RecoveryMethod.OWNED


def inflate(amount: Decimal, rate: Decimal, years: int) -> Decimal:
    """Compound ``amount`` at ``rate`` per year for ``years`` (no-op at rate 0)."""
    if rate == ZERO or years <= 0:
        return amount
    return amount * (ONE + rate) ** years


class ValuationEngine:
    """
    Pure calculator for per-asset valuation.

    Contract:
        No I/O, no clock, fully deterministic.  The category table and
        as-of date are passed on every call.
    Guarantees:
        - ``calculate`` never raises for malformed numeric input.
        - ``calculate_many`` preserves input order.
    Non-goals:
        - Does not validate that cogs_percent is within 0-100; the split is
          applied as given.
        - Does not compute financing metrics (see ``CashflowProjector``).
    """

    @traced_engine("valuation", "1.0", fingerprint_fields=("equipment", "as_of", "annual_inflation_rate"))
    def calculate(
        self,
        equipment: Equipment,
        category_table: CategoryDefaultsTable,
        as_of: date,
        annual_inflation_rate: Decimal = ZERO,
    ) -> EquipmentCalculated:
        """
        Value one equipment record.

        Args:
            equipment: Source facts.
            category_table: Category assumptions; unknown keys fall back.
            as_of: Date that defines "current year" for years-left and
                inflation.
            annual_inflation_rate: Optional yearly escalation applied to the
                replacement cost (0.03 for 3%).  Zero leaves it unchanged.
        """
        rate = to_decimal(annual_inflation_rate, "annual_inflation_rate")
        defaults = category_table.lookup(equipment.category)
        if equipment.category not in category_table:
            logger.debug("category_fallback_used", extra={
                "category": equipment.category,
                "fallback_category": defaults.category,
            })

        total_cost_basis = (
            equipment.purchase_price
            + equipment.sales_tax
            + equipment.freight_setup
            + equipment.other_capex
        )

        overhead_percent = HUNDRED - equipment.cogs_percent
        cogs_allocated_cost = equipment.cogs_percent / HUNDRED * total_cost_basis
        overhead_allocated_cost = overhead_percent / HUNDRED * total_cost_basis

        if equipment.useful_life_override is not None:
            useful_life_used = equipment.useful_life_override
        else:
            useful_life_used = defaults.default_useful_life
        purchase_year = equipment.purchase_date.year
        estimated_end_of_life_year = purchase_year + useful_life_used
        estimated_years_left = max(0, estimated_end_of_life_year - as_of.year)

        if equipment.replacement_cost_new > ZERO:
            source = ReplacementCostSource.MANUAL
            from_year = (
                equipment.replacement_cost_as_of_date.year
                if equipment.replacement_cost_as_of_date is not None
                else as_of.year
            )
            base = equipment.replacement_cost_new
        else:
            source = ReplacementCostSource.COST_BASIS
            from_year = purchase_year
            base = total_cost_basis
        inflation_years = max(0, as_of.year - from_year) if rate != ZERO else 0
        replacement_cost_used = inflate(base, rate, inflation_years)

        expected_resale_default = defaults.default_resale_percent / HUNDRED * replacement_cost_used
        if equipment.expected_resale_override is not None:
            expected_resale_used = equipment.expected_resale_override
        else:
            expected_resale_used = expected_resale_default

        roi_percent = self._roi_percent(equipment, total_cost_basis)

        result = EquipmentCalculated(
            equipment=equipment,
            total_cost_basis=total_cost_basis,
            overhead_percent=overhead_percent,
            cogs_allocated_cost=cogs_allocated_cost,
            overhead_allocated_cost=overhead_allocated_cost,
            useful_life_used=useful_life_used,
            estimated_end_of_life_year=estimated_end_of_life_year,
            estimated_years_left=estimated_years_left,
            default_resale_percent=defaults.default_resale_percent,
            expected_resale_default=expected_resale_default,
            expected_resale_used=expected_resale_used,
            replacement_cost_used=replacement_cost_used,
            replacement_cost_source=source,
            inflation_years=inflation_years,
            unit=defaults.unit,
            recovery_method=resolve_recovery_method(equipment),
            roi_percent=roi_percent,
        )

        logger.debug("equipment_valued", extra={
            "equipment_id": equipment.id,
            "category": equipment.category,
            "total_cost_basis": str(total_cost_basis),
            "useful_life_used": useful_life_used,
            "estimated_years_left": estimated_years_left,
            "replacement_cost_source": source.value,
            "recovery_method": result.recovery_method.value,
        })
        return result

    @staticmethod
    def _roi_percent(equipment: Equipment, total_cost_basis: Decimal) -> Decimal | None:
        if equipment.status != EquipmentStatus.SOLD or equipment.sale_price is None:
            return None
        if total_cost_basis == ZERO:
            logger.warning("roi_skipped_zero_cost_basis", extra={
                "equipment_id": equipment.id,
            })
            return None
        return (equipment.sale_price - total_cost_basis) / total_cost_basis * HUNDRED

    def calculate_many(
        self,
        equipment: Sequence[Equipment],
        category_table: CategoryDefaultsTable,
        as_of: date,
        annual_inflation_rate: Decimal = ZERO,
    ) -> tuple[EquipmentCalculated, ...]:
        """Value every record in ``equipment``, preserving order."""
        results = tuple(
            self.calculate(
                equipment=item,
                category_table=category_table,
                as_of=as_of,
                annual_inflation_rate=annual_inflation_rate,
            )
            for item in equipment
        )
        logger.info("fleet_valued", extra={
            "item_count": len(results),
            "as_of": as_of.isoformat(),
        })
        return results

    def to_export_record(
        self,
        calculated: EquipmentCalculated,
        attachment_total: Decimal = ZERO,
    ) -> EquipmentExportRecord:
        """
        Shape one valued asset as an LMN equipment import row.

        Attachments (buckets, forks, plows) add to the replacement value
        but not to the asset's own purchase price.
        """
        equipment = calculated.equipment
        attachment_total = to_decimal(attachment_total, "attachment_total")
        return EquipmentExportRecord(
            equipment_name=f"{equipment.category} - {equipment.name}",
            purchase_price=equipment.purchase_price,
            additional_purchase_fees=(
                equipment.sales_tax + equipment.freight_setup + equipment.other_capex
            ),
            attachment_value=attachment_total,
            replacement_value=calculated.replacement_cost_used + attachment_total,
            expected_value_at_end_of_life=calculated.expected_resale_used,
            useful_life=calculated.useful_life_used,
            cogs_percent=equipment.cogs_percent,
            overhead_percent=calculated.overhead_percent,
            cogs_allocated_cost=calculated.cogs_allocated_cost,
            overhead_allocated_cost=calculated.overhead_allocated_cost,
        )
