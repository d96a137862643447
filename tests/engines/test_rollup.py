"""
Tests for the Rollup Aggregator.

Covers:
- Active-only filtering
- Field vs overhead partition (operational vs overhead_only / owner_perk)
- Owned vs leased partition by recovery method
- Line aggregates (qty, averages, recovery, COGS/overhead, payments)
- Line ordering
- Totals consistency
- Single-pass grouping into a read-only mapping
"""

from datetime import date
from decimal import Decimal

import pytest

from fleet_engines.rollup import (
    RollupAggregator,
    RollupTotals,
    build_lines,
    compute_totals,
    group_items,
)
from fleet_engines.valuation import ValuationEngine
from fleet_kernel.domain.categories import CategoryDefaults, CategoryDefaultsTable, UsageUnit
from fleet_kernel.domain.equipment import (
    AllocationType,
    EquipmentStatus,
    FinancingType,
    RecoveryMethod,
)

AS_OF = date(2024, 6, 30)

ROLLUP_TABLE = CategoryDefaultsTable(rows=(
    CategoryDefaults("Skid Steer", 6, 20, unit=UsageUnit.HOURS),
    CategoryDefaults("Trailer", 10, 35, unit=UsageUnit.DAYS),
    CategoryDefaults("Shop / Other", 7, 10),
))


@pytest.fixture
def value_all():
    engine = ValuationEngine()

    def _value_all(equipment):
        return engine.calculate_many(equipment, ROLLUP_TABLE, AS_OF)

    return _value_all


def leased(**overrides):
    return {
        "financing_type": FinancingType.LEASED,
        "lmn_recovery_method": RecoveryMethod.LEASED,
        **overrides,
    }


@pytest.fixture
def mixed_fleet(make_equipment, value_all):
    return value_all([
        make_equipment(name="SS1", category="Skid Steer", purchase_price=Decimal("50000")),
        make_equipment(
            name="SS2", category="Skid Steer",
            purchase_price=Decimal("40000"), cogs_percent=Decimal("80"),
        ),
        make_equipment(**leased(
            name="SS3", category="Skid Steer",
            purchase_price=Decimal("60000"), monthly_payment=Decimal("1500"),
        )),
        make_equipment(
            name="T1", category="Trailer",
            purchase_price=Decimal("10000"), allocation_type=AllocationType.OVERHEAD_ONLY,
        ),
        make_equipment(
            name="SOLD", category="Skid Steer",
            purchase_price=Decimal("45000"), status=EquipmentStatus.SOLD,
        ),
        make_equipment(**leased(
            name="T2", category="Trailer",
            purchase_price=Decimal("5000"), monthly_payment=Decimal("250"),
            allocation_type=AllocationType.OWNER_PERK,
        )),
    ])


class TestPartition:

    def setup_method(self):
        self.aggregator = RollupAggregator()

    def test_sections(self, mixed_fleet):
        result = self.aggregator.rollup(calculated_equipment=mixed_fleet)

        assert [line.item_names for line in result.field_owned] == [("SS1", "SS2")]
        assert [line.item_names for line in result.field_leased] == [("SS3",)]
        assert [line.item_names for line in result.overhead_owned] == [("T1",)]
        assert [line.item_names for line in result.overhead_leased] == [("T2",)]

    def test_inactive_excluded(self, mixed_fleet):
        result = self.aggregator.rollup(calculated_equipment=mixed_fleet)

        names = [name for line in result.all_lines for name in line.item_names]
        assert "SOLD" not in names

    def test_leased_without_flag_is_owned(self, make_equipment, value_all):
        calculated = value_all([
            make_equipment(
                category="Skid Steer",
                financing_type=FinancingType.LEASED,
                monthly_payment=Decimal("900"),
            ),
        ])

        result = self.aggregator.rollup(calculated_equipment=calculated)

        assert len(result.field_owned) == 1
        assert result.field_leased == ()
        assert result.field_owned[0].total_monthly_payment == Decimal("900")

    def test_empty_input(self):
        result = self.aggregator.rollup(calculated_equipment=[])

        assert result.all_lines == ()
        assert result.field_totals == RollupTotals()
        assert result.overhead_totals == RollupTotals()


class TestLineAggregates:

    def setup_method(self):
        self.aggregator = RollupAggregator()

    def test_field_owned_line(self, mixed_fleet):
        line = self.aggregator.rollup(calculated_equipment=mixed_fleet).field_owned[0]

        assert line.category == "Skid Steer"
        assert line.recovery_method == RecoveryMethod.OWNED
        assert line.qty == 2
        assert line.avg_replacement_value == Decimal("45000")
        assert line.avg_useful_life == Decimal("6")
        assert line.avg_end_value == Decimal("9000")
        assert line.total_annual_recovery == Decimal("12000")
        assert line.total_cogs == Decimal("82000")
        assert line.total_overhead == Decimal("8000")
        assert line.total_monthly_payment == Decimal("0")
        assert line.unit == UsageUnit.HOURS

    def test_leased_line_payments(self, mixed_fleet):
        result = self.aggregator.rollup(calculated_equipment=mixed_fleet)

        assert result.field_leased[0].total_monthly_payment == Decimal("1500")
        assert result.overhead_leased[0].total_monthly_payment == Decimal("250")
        assert result.overhead_leased[0].unit == UsageUnit.DAYS

    def test_zero_life_recovery_uses_one_year(self, make_equipment, value_all):
        calculated = value_all([
            make_equipment(
                category="Skid Steer",
                purchase_price=Decimal("10000"),
                useful_life_override=0,
            ),
        ])

        line = self.aggregator.rollup(calculated_equipment=calculated).field_owned[0]

        assert line.total_annual_recovery == Decimal("8000")
        assert line.avg_useful_life == Decimal("0")

    def test_lines_sorted_by_category_code_point(self, make_equipment, value_all):
        calculated = value_all([
            make_equipment(name="a", category="Trailer"),
            make_equipment(name="b", category="backhoe"),
            make_equipment(name="c", category="Compact"),
        ])

        lines = self.aggregator.rollup(calculated_equipment=calculated).field_owned

        assert [line.category for line in lines] == ["Compact", "Trailer", "backhoe"]


class TestTotals:

    def setup_method(self):
        self.aggregator = RollupAggregator()

    def test_section_totals(self, mixed_fleet):
        result = self.aggregator.rollup(calculated_equipment=mixed_fleet)

        assert result.field_owned_totals.total_qty == 2
        assert result.field_leased_totals.total_monthly_payment == Decimal("1500")
        assert result.field_totals.total_qty == 3
        assert result.overhead_totals.total_qty == 2
        assert result.overhead_totals.total_monthly_payment == Decimal("250")

    def test_totals_equal_line_sums(self, mixed_fleet):
        result = self.aggregator.rollup(calculated_equipment=mixed_fleet)

        pairs = [
            (result.field_owned, result.field_owned_totals),
            (result.field_leased, result.field_leased_totals),
            (result.overhead_owned, result.overhead_owned_totals),
            (result.overhead_leased, result.overhead_leased_totals),
        ]
        for lines, totals in pairs:
            assert sum(line.qty for line in lines) == totals.total_qty
            assert sum((line.total_annual_recovery for line in lines), Decimal("0")) == totals.total_annual_recovery
            assert sum((line.total_cogs for line in lines), Decimal("0")) == totals.total_cogs
            assert sum((line.total_overhead for line in lines), Decimal("0")) == totals.total_overhead
            assert sum((line.total_monthly_payment for line in lines), Decimal("0")) == totals.total_monthly_payment

        assert result.field_totals == result.field_owned_totals + result.field_leased_totals
        assert result.overhead_totals == result.overhead_owned_totals + result.overhead_leased_totals

    def test_compute_totals_of_nothing(self):
        assert compute_totals([]) == RollupTotals()

    def test_rollup_logged(self, mixed_fleet, captured_logs):
        self.aggregator.rollup(calculated_equipment=mixed_fleet)

        records = [r for r in captured_logs() if r["message"] == "rollup_completed"]
        assert records[0]["active_count"] == 5
        assert records[0]["line_count"] == 4


class TestGrouping:

    def test_group_items_is_read_only(self, mixed_fleet):
        groups = group_items(mixed_fleet)

        with pytest.raises(TypeError):
            groups[("X", RecoveryMethod.OWNED)] = ()

    def test_group_keys(self, mixed_fleet):
        groups = group_items(mixed_fleet)

        assert set(groups) == {
            ("Skid Steer", RecoveryMethod.OWNED),
            ("Skid Steer", RecoveryMethod.LEASED),
            ("Trailer", RecoveryMethod.OWNED),
            ("Trailer", RecoveryMethod.LEASED),
        }
        assert len(groups[("Skid Steer", RecoveryMethod.OWNED)]) == 3

    def test_build_lines_preserves_item_order(self, mixed_fleet):
        lines = build_lines(mixed_fleet[:2])

        assert lines[0].item_names == ("SS1", "SS2")

    def test_large_single_group(self, make_equipment, value_all):
        calculated = value_all([
            make_equipment(name=f"SS{i}", category="Skid Steer") for i in range(2000)
        ])

        groups = group_items(calculated)

        members = groups[("Skid Steer", RecoveryMethod.OWNED)]
        assert isinstance(members, tuple)
        assert len(members) == 2000
        assert [item.name for item in members[:3]] == ["SS0", "SS1", "SS2"]
        assert members[-1].name == "SS1999"
