"""
Pure domain layer.

Immutable records and helpers with NO dependencies on:
- Persistence
- Time/clock (except the Clock abstraction itself)
- I/O
"""

from fleet_kernel.domain.categories import (
    CategoryDefaults,
    CategoryDefaultsTable,
    UsageUnit,
)
from fleet_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from fleet_kernel.domain.equipment import (
    AllocationType,
    Equipment,
    EquipmentCalculated,
    EquipmentExportRecord,
    EquipmentStatus,
    FinancingType,
    PurchaseCondition,
    RecoveryMethod,
    ReplacementCostSource,
)

__all__ = [
    "AllocationType",
    "CategoryDefaults",
    "CategoryDefaultsTable",
    "Clock",
    "DeterministicClock",
    "Equipment",
    "EquipmentCalculated",
    "EquipmentExportRecord",
    "EquipmentStatus",
    "FinancingType",
    "PurchaseCondition",
    "RecoveryMethod",
    "ReplacementCostSource",
    "SystemClock",
    "UsageUnit",
]
