"""
Typed Exception Hierarchy for the Fleet Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

The engines favor graceful degradation: an unknown category falls back to
the last-resort row, a zero useful life is clamped to one year, a missing
override is replaced by its computed default.  The few conditions that DO
fail must be caught by type, not by parsing a message:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        result = analyzer.analyze(rent_input)
    except BreakEvenUndefinedError as e:
        api_response(code=e.code, purchase_price=e.purchase_price)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    FleetKernelError (base)
    |
    +-- EquipmentError
    |   +-- MissingIdentificationError
    |
    +-- BuyVsRentError
    |   +-- BreakEvenUndefinedError
    |
    +-- ConfigError
        +-- CategoryTableError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Equipment       | MISSING_IDENTIFICATION      | Equipment record lacks name or category
----------------|-----------------------------|-----------------------------------------
Buy vs Rent     | BREAK_EVEN_UNDEFINED        | No daily, weekly or monthly rate > 0
----------------|-----------------------------|-----------------------------------------
Config          | CATEGORY_TABLE_INVALID      | Empty table, duplicate key, bad fallback

===============================================================================
"""


class FleetKernelError(Exception):
    """
    Base exception for all fleet kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "FLEET_KERNEL_ERROR"


# Equipment-related exceptions


class EquipmentError(FleetKernelError):
    """Base exception for malformed equipment records."""

    code: str = "EQUIPMENT_ERROR"


class MissingIdentificationError(EquipmentError):
    """Equipment record is missing a required identification field."""

    code: str = "MISSING_IDENTIFICATION"

    def __init__(self, field_name: str, equipment_id: str | None = None):
        self.field_name = field_name
        self.equipment_id = equipment_id
        target = f" on equipment {equipment_id}" if equipment_id else ""
        super().__init__(
            f"Missing required identification field '{field_name}'{target}"
        )


# Buy-vs-rent exceptions


class BuyVsRentError(FleetKernelError):
    """Base exception for buy-vs-rent analysis errors."""

    code: str = "BUY_VS_RENT_ERROR"


class BreakEvenUndefinedError(BuyVsRentError):
    """
    No usable rental rate was supplied.

    Break-even is ownership cost divided by an effective daily rental rate.
    With daily, weekly and monthly rates all absent or zero there is no
    rate to divide by, so the analysis cannot be produced.
    """

    code: str = "BREAK_EVEN_UNDEFINED"

    def __init__(self, purchase_price: str, description: str | None = None):
        self.purchase_price = purchase_price
        self.description = description
        super().__init__(
            "Break-even is undefined: no daily, weekly or monthly rental "
            f"rate greater than zero (purchase price {purchase_price})"
        )


# Configuration exceptions


class ConfigError(FleetKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class CategoryTableError(ConfigError):
    """Category defaults table is structurally invalid."""

    code: str = "CATEGORY_TABLE_INVALID"

    def __init__(self, reason: str, category: str | None = None):
        self.reason = reason
        self.category = category
        suffix = f": {category}" if category else ""
        super().__init__(f"Invalid category defaults table ({reason}){suffix}")
