"""
Configuration Loader (``fleet_config.loader``).

Responsibility
--------------
Loads the category defaults YAML file and parses it into the frozen
``CategoryDefaults`` / ``CategoryDefaultsTable`` domain types.  Callers
obtain tables through ``fleet_config.get_category_table()``; this module is
the parsing layer underneath it.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  Depends on ``fleet_kernel``
domain types only.  Engines never import this package; they receive the
parsed table as an argument.

Invariants enforced
-------------------
* All parse errors raise ``ValueError``, ``KeyError`` or
  ``CategoryTableError`` with descriptive messages; no silent defaults for
  required fields.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys in a category row  -> ``KeyError`` propagates.
* Unknown usage unit  -> ``ValueError`` from ``UsageUnit``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from fleet_kernel.domain.categories import (
    CategoryDefaults,
    CategoryDefaultsTable,
    UsageUnit,
)
from fleet_kernel.exceptions import CategoryTableError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_category_defaults(data: dict[str, Any]) -> CategoryDefaults:
    """
    Parse one ``CategoryDefaults`` row from a dict.

    Preconditions:
        - ``data`` has ``category``, ``default_useful_life`` and
          ``default_resale_percent`` keys.
    Postconditions:
        - Returns a frozen ``CategoryDefaults`` with Decimal percentages.
    Raises:
        KeyError: if a required key is missing.
    """
    return CategoryDefaults(
        category=str(data["category"]),
        default_useful_life=int(data["default_useful_life"]),
        default_resale_percent=data["default_resale_percent"],
        maintenance_percent=data.get("maintenance_percent", 0),
        insurance_percent=data.get("insurance_percent", 0),
        unit=UsageUnit(data.get("unit", UsageUnit.HOURS.value)),
        notes=str(data.get("notes", "")),
    )


def parse_category_table(data: dict[str, Any]) -> CategoryDefaultsTable:
    """
    Parse a full ``CategoryDefaultsTable`` from the top-level YAML dict.

    Raises:
        CategoryTableError: if ``categories`` is missing or not a list, or
            the parsed rows violate table invariants.
        KeyError: if a row is missing a required key.
    """
    rows = data.get("categories")
    if not isinstance(rows, list):
        raise CategoryTableError("'categories' must be a list")
    return CategoryDefaultsTable(
        rows=tuple(parse_category_defaults(row) for row in rows),
        fallback_category=data.get("fallback_category"),
    )


def load_category_table(path: Path) -> CategoryDefaultsTable:
    """Load and parse a category defaults YAML file."""
    return parse_category_table(load_yaml_file(path))


def table_to_dict(table: CategoryDefaultsTable) -> dict[str, Any]:
    """Canonical dict form of a table (inverse of ``parse_category_table``)."""
    return {
        "fallback_category": table.fallback_category,
        "categories": [
            {
                "category": row.category,
                "default_useful_life": row.default_useful_life,
                "default_resale_percent": str(row.default_resale_percent),
                "maintenance_percent": str(row.maintenance_percent),
                "insurance_percent": str(row.insurance_percent),
                "unit": row.unit.value,
                "notes": row.notes,
            }
            for row in table.rows
        ],
    }


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
