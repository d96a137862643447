"""
Pytest fixtures for the fleet valuation test suite.

Provides:
- Structured logging configured for the session, plus a ``captured_logs``
  fixture returning parsed JSON records
- The shipped category defaults table
- A deterministic as-of date and clock
- An equipment builder with sensible defaults
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO

import pytest

from fleet_config import get_category_table
from fleet_kernel.domain.clock import DeterministicClock
from fleet_kernel.domain.equipment import Equipment
from fleet_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)

AS_OF = date(2024, 6, 30)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG, stream=StringIO())
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture fleet_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            engine.calculate(...)
            logs = captured_logs()
            assert any(r["message"] == "equipment_valued" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("fleet_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture(scope="session")
def category_table():
    """The shipped category defaults table."""
    return get_category_table()


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def clock():
    return DeterministicClock.on(AS_OF)


def build_equipment(**overrides) -> Equipment:
    """Equipment with test defaults; any field can be overridden."""
    fields = {
        "name": "Unit 1",
        "category": "Excavation",
        "purchase_date": date(2020, 3, 15),
        "purchase_price": Decimal("50000"),
    }
    fields.update(overrides)
    return Equipment(**fields)


@pytest.fixture
def make_equipment():
    """Factory fixture wrapping ``build_equipment``."""
    return build_equipment
