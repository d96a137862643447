"""
Tests for the LMN budget CSV export.

Covers:
- Exact text for a mixed fleet
- Leased sections omitted when empty; owned sections always present
- Quoting of commas and quotes
- Half-up rounding of currency, life and per-unit payments
"""

from datetime import date
from decimal import Decimal

import pytest

from fleet_engines.rollup import RollupAggregator
from fleet_engines.rollup_csv import round_half_up, to_csv
from fleet_engines.valuation import ValuationEngine
from fleet_kernel.domain.categories import CategoryDefaults, CategoryDefaultsTable, UsageUnit
from fleet_kernel.domain.equipment import AllocationType, FinancingType, RecoveryMethod

AS_OF = date(2024, 6, 30)

CSV_TABLE = CategoryDefaultsTable(rows=(
    CategoryDefaults("Skid Steer", 6, 20, unit=UsageUnit.HOURS),
    CategoryDefaults("Trailer", 10, 35, unit=UsageUnit.DAYS),
    CategoryDefaults("Shop / Other", 7, 10),
))

LEASED = {
    "financing_type": FinancingType.LEASED,
    "lmn_recovery_method": RecoveryMethod.LEASED,
}


@pytest.fixture
def export(make_equipment):
    engine = ValuationEngine()
    aggregator = RollupAggregator()

    def _export(equipment):
        calculated = engine.calculate_many(equipment, CSV_TABLE, AS_OF)
        return to_csv(aggregator.rollup(calculated_equipment=calculated))

    return _export


class TestCsvLayout:

    def test_full_export(self, make_equipment, export):
        text = export([
            make_equipment(name="SS1", category="Skid Steer", purchase_price=Decimal("50000")),
            make_equipment(name="SS2", category="Skid Steer", purchase_price=Decimal("40000")),
            make_equipment(
                name="SS3", category="Skid Steer",
                purchase_price=Decimal("60000"), monthly_payment=Decimal("1500"), **LEASED,
            ),
            make_equipment(
                name="T1", category="Trailer",
                purchase_price=Decimal("10000"), allocation_type=AllocationType.OVERHEAD_ONLY,
            ),
            make_equipment(
                name="T2", category="Trailer",
                purchase_price=Decimal("5000"), monthly_payment=Decimal("250"),
                allocation_type=AllocationType.OWNER_PERK, **LEASED,
            ),
        ])

        assert text == (
            "FIELD EQUIPMENT - OWNED\n"
            "Category,Qty,Avg Replacement Value,Life (Yrs),Avg End Value,Unit\n"
            "Skid Steer,2,45000,6,9000,Hours\n"
            "Total,2,,,,\n"
            "\n"
            "FIELD EQUIPMENT - LEASED\n"
            "Category,Qty,Monthly Payment,Life (Yrs),Avg End Value,Unit\n"
            "Skid Steer,1,1500,6,12000,Hours\n"
            "Total,1,1500,,,\n"
            "\n"
            "OVERHEAD EQUIPMENT - OWNED\n"
            "Category,Qty,Avg Replacement Value,Life (Yrs),Avg End Value,Unit\n"
            "Trailer,1,10000,10,3500,Days\n"
            "Total,1,,,,\n"
            "\n"
            "OVERHEAD EQUIPMENT - LEASED\n"
            "Category,Qty,Monthly Payment,Life (Yrs),Avg End Value,Unit\n"
            "Trailer,1,250,10,1750,Days\n"
            "Total,1,250,,,"
        )

    def test_empty_result_keeps_owned_sections(self, export):
        assert export([]) == (
            "FIELD EQUIPMENT - OWNED\n"
            "Category,Qty,Avg Replacement Value,Life (Yrs),Avg End Value,Unit\n"
            "Total,0,,,,\n"
            "\n"
            "OVERHEAD EQUIPMENT - OWNED\n"
            "Category,Qty,Avg Replacement Value,Life (Yrs),Avg End Value,Unit\n"
            "Total,0,,,,"
        )

    def test_no_leased_items_means_no_leased_section(self, make_equipment, export):
        text = export([make_equipment(category="Skid Steer")])

        assert "LEASED" not in text

    def test_leased_without_flag_stays_in_owned_section(self, make_equipment, export):
        text = export([
            make_equipment(
                category="Skid Steer",
                financing_type=FinancingType.LEASED,
                monthly_payment=Decimal("800"),
            ),
        ])

        assert "LEASED" not in text

    def test_one_leased_section_per_group(self, make_equipment, export):
        text = export([
            make_equipment(name="a", category="Skid Steer", monthly_payment=Decimal("100"), **LEASED),
            make_equipment(name="b", category="Trailer", monthly_payment=Decimal("100"), **LEASED),
        ])

        assert text.count("FIELD EQUIPMENT - LEASED") == 1
        assert "OVERHEAD EQUIPMENT - LEASED" not in text

    def test_no_newline_after_last_row(self, make_equipment, export):
        text = export([make_equipment(category="Skid Steer")])

        assert text.endswith("Total,0,,,,")
        assert not text.endswith("\n")
        assert "\r" not in text

    def test_aggregator_to_csv_matches(self, make_equipment):
        aggregator = RollupAggregator()
        calculated = ValuationEngine().calculate_many([make_equipment()], CSV_TABLE, AS_OF)
        result = aggregator.rollup(calculated_equipment=calculated)

        assert aggregator.to_csv(result) == to_csv(result)


class TestCsvQuoting:

    def test_comma_is_quoted(self, make_equipment, export):
        text = export([make_equipment(category="Mowers, Large")])

        assert '"Mowers, Large",1,' in text

    def test_quote_is_doubled(self, make_equipment, export):
        text = export([make_equipment(category='The "Big" One')])

        assert '"The ""Big"" One",1,' in text

    def test_newline_is_quoted(self, make_equipment, export):
        text = export([make_equipment(category="Line\nBreak")])

        assert '"Line\nBreak",1,' in text


class TestCsvRounding:

    @pytest.mark.parametrize("value,expected", [
        ("2.5", 3),
        ("2.4999", 2),
        ("-2.5", -2),
        ("-2.6", -3),
        ("0", 0),
        ("1234.50", 1235),
    ])
    def test_round_half_up(self, value, expected):
        assert round_half_up(Decimal(value)) == expected

    def test_average_life_rounds_half_up(self, make_equipment, export):
        text = export([
            make_equipment(name="a", category="Skid Steer", purchase_price=Decimal("1000"), useful_life_override=6),
            make_equipment(name="b", category="Skid Steer", purchase_price=Decimal("1001"), useful_life_override=7),
        ])

        # avg replacement 1000.5, life 6.5, end value 200.1
        assert "Skid Steer,2,1001,7,200,Hours\n" in text

    def test_per_unit_monthly_payment(self, make_equipment, export):
        text = export([
            make_equipment(name="a", category="Skid Steer", monthly_payment=Decimal("1000"), **LEASED),
            make_equipment(name="b", category="Skid Steer", monthly_payment=Decimal("1001"), **LEASED),
        ])

        assert "Skid Steer,2,1001,6,10000,Hours\n" in text
        assert "Total,2,2001,,,\n" in text
