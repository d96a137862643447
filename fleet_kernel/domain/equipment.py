"""
Equipment -- Input fact records and the derived valuation record.

Responsibility:
    Defines the nouns the engines operate on: ``Equipment`` (facts entered
    or imported by external flows) and ``EquipmentCalculated`` (the pure
    projection produced by ``ValuationEngine``).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts and percentages are ``Decimal`` after construction.
    - ``Equipment`` requires a non-blank ``name`` and ``category``.
    - ``EquipmentCalculated`` is never persisted on its own; it always
      carries the ``Equipment`` it was derived from.

Failure modes:
    - MissingIdentificationError when ``name`` or ``category`` is blank.
    - ValueError when a numeric field cannot be read as a decimal.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from fleet_kernel.domain.categories import UsageUnit
from fleet_kernel.domain.values import to_decimal, to_optional_decimal
from fleet_kernel.exceptions import MissingIdentificationError


class EquipmentStatus(str, Enum):
    """Asset lifecycle states."""

    ACTIVE = "Active"
    SOLD = "Sold"
    RETIRED = "Retired"
    LOST = "Lost"


class FinancingType(str, Enum):
    """How the asset was acquired."""

    OWNED = "owned"
    FINANCED = "financed"
    LEASED = "leased"


class AllocationType(str, Enum):
    """Where the asset's cost is recovered."""

    OPERATIONAL = "operational"  # field equipment, priced into jobs
    OVERHEAD_ONLY = "overhead_only"
    OWNER_PERK = "owner_perk"


class RecoveryMethod(str, Enum):
    """Budget-export treatment, independent of the literal financing type."""

    OWNED = "owned"
    LEASED = "leased"


class PurchaseCondition(str, Enum):
    NEW = "new"
    USED = "used"


class ReplacementCostSource(str, Enum):
    """Where ``replacement_cost_used`` came from."""

    MANUAL = "manual"  # replacement_cost_new entered by the user
    COST_BASIS = "cost_basis"  # falls back to total cost basis


_AMOUNT_FIELDS = (
    "purchase_price",
    "sales_tax",
    "freight_setup",
    "other_capex",
    "cogs_percent",
    "replacement_cost_new",
    "deposit_amount",
    "financed_amount",
    "monthly_payment",
    "buyout_amount",
)

_OPTIONAL_AMOUNT_FIELDS = (
    "expected_resale_override",
    "sale_price",
)


@dataclass(frozen=True)
class Equipment:
    """
    A piece of fleet equipment as entered by the owner.

    Contract:
        Frozen dataclass; created and mutated only by external entry or
        import flows.  The engines read it and never change it.
    Guarantees:
        - ``name`` and ``category`` are non-blank.
        - Amount fields are ``Decimal``; enum fields are enum members.
    Non-goals:
        - Does not validate that ``cogs_percent`` is within 0-100 or that
          amounts are non-negative; the engines tolerate such input.
    """

    name: str
    category: str
    purchase_date: date
    purchase_price: Decimal = Decimal("0")
    sales_tax: Decimal = Decimal("0")
    freight_setup: Decimal = Decimal("0")
    other_capex: Decimal = Decimal("0")
    cogs_percent: Decimal = Decimal("100")
    status: EquipmentStatus = EquipmentStatus.ACTIVE
    id: str | None = None
    asset_id: str | None = None
    make: str = ""
    model: str = ""
    year: int | None = None
    serial_vin: str | None = None
    purchase_condition: PurchaseCondition = PurchaseCondition.NEW

    # Overrides
    useful_life_override: int | None = None
    expected_resale_override: Decimal | None = None
    replacement_cost_new: Decimal = Decimal("0")
    replacement_cost_as_of_date: date | None = None

    # Financing (informational only; never feeds cost basis or depreciation)
    financing_type: FinancingType = FinancingType.OWNED
    deposit_amount: Decimal = Decimal("0")
    financed_amount: Decimal = Decimal("0")
    monthly_payment: Decimal = Decimal("0")
    term_months: int = 0
    buyout_amount: Decimal = Decimal("0")
    financing_start_date: date | None = None
    lmn_recovery_method: RecoveryMethod | None = None

    allocation_type: AllocationType = AllocationType.OPERATIONAL

    # Disposal
    sale_date: date | None = None
    sale_price: Decimal | None = None

    def __post_init__(self) -> None:
        for name in ("name", "category"):
            value = getattr(self, name)
            if value is None or not str(value).strip():
                raise MissingIdentificationError(name, self.id)

        for name in _AMOUNT_FIELDS:
            object.__setattr__(self, name, to_decimal(getattr(self, name), name))
        for name in _OPTIONAL_AMOUNT_FIELDS:
            object.__setattr__(
                self, name, to_optional_decimal(getattr(self, name), name)
            )

        object.__setattr__(self, "status", EquipmentStatus(self.status))
        object.__setattr__(self, "financing_type", FinancingType(self.financing_type))
        object.__setattr__(self, "allocation_type", AllocationType(self.allocation_type))
        object.__setattr__(
            self, "purchase_condition", PurchaseCondition(self.purchase_condition)
        )
        if self.lmn_recovery_method is not None:
            object.__setattr__(
                self, "lmn_recovery_method", RecoveryMethod(self.lmn_recovery_method)
            )
        object.__setattr__(self, "term_months", int(self.term_months))
        if self.useful_life_override is not None:
            object.__setattr__(self, "useful_life_override", int(self.useful_life_override))

    @property
    def is_active(self) -> bool:
        return self.status == EquipmentStatus.ACTIVE


@dataclass(frozen=True)
class EquipmentCalculated:
    """
    Valuation of one ``Equipment`` record.

    Contract:
        Produced only by ``ValuationEngine.calculate``.  Recomputed on
        demand; a pure projection of ``equipment`` plus the category table
        and as-of date it was computed with.
    Guarantees:
        - ``cogs_allocated_cost + overhead_allocated_cost == total_cost_basis``
          when ``cogs_percent`` is in [0, 100].
        - ``estimated_years_left >= 0``.
        - ``roi_percent`` is ``None`` unless the asset was sold with a
          recorded sale price.
    """

    equipment: Equipment
    total_cost_basis: Decimal
    overhead_percent: Decimal
    cogs_allocated_cost: Decimal
    overhead_allocated_cost: Decimal
    useful_life_used: int
    estimated_end_of_life_year: int
    estimated_years_left: int
    default_resale_percent: Decimal
    expected_resale_default: Decimal
    expected_resale_used: Decimal
    replacement_cost_used: Decimal
    replacement_cost_source: ReplacementCostSource
    inflation_years: int
    unit: UsageUnit
    recovery_method: RecoveryMethod
    roi_percent: Decimal | None = None

    # Read-through accessors used by cashflow and rollup

    @property
    def name(self) -> str:
        return self.equipment.name

    @property
    def category(self) -> str:
        return self.equipment.category

    @property
    def status(self) -> EquipmentStatus:
        return self.equipment.status

    @property
    def allocation_type(self) -> AllocationType:
        return self.equipment.allocation_type

    @property
    def financing_type(self) -> FinancingType:
        return self.equipment.financing_type

    @property
    def cogs_percent(self) -> Decimal:
        return self.equipment.cogs_percent

    @property
    def monthly_payment(self) -> Decimal:
        return self.equipment.monthly_payment

    @property
    def is_active(self) -> bool:
        return self.equipment.is_active

    @property
    def is_field(self) -> bool:
        """Operational (field) equipment; everything else rolls up as overhead."""
        return self.equipment.allocation_type == AllocationType.OPERATIONAL


@dataclass(frozen=True)
class EquipmentExportRecord:
    """One equipment row in the shape of the LMN equipment import."""

    equipment_name: str  # "<category> - <name>"
    purchase_price: Decimal
    additional_purchase_fees: Decimal
    attachment_value: Decimal
    replacement_value: Decimal
    expected_value_at_end_of_life: Decimal
    useful_life: int
    cogs_percent: Decimal
    overhead_percent: Decimal
    cogs_allocated_cost: Decimal
    overhead_allocated_cost: Decimal
