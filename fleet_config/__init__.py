"""
fleet_config -- single public entrypoint for category defaults.

Responsibility:
    Provides the way to obtain a ``CategoryDefaultsTable`` at runtime
    through ``get_category_table()``.  YAML loading is internal tooling in
    ``fleet_config.loader``.

Architecture position:
    Configuration -- sits above ``fleet_kernel`` and beside
    ``fleet_services``.  ``fleet_engines`` MUST NEVER import from
    ``fleet_config``; services load the table and pass it into engine calls.

Invariants enforced:
    - No module-level table singleton: every call parses the file and
      returns a fresh immutable table.
    - Deterministic: the same YAML always yields the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``CategoryTableError`` / ``KeyError`` -- structural problems.

Audit relevance:
    Every call emits a ``FLEET_CONFIG_TRACE`` log entry with the source
    path, row count, fallback category and checksum, tying exported budgets
    back to the exact assumptions that produced them.
"""

from __future__ import annotations

import logging
from pathlib import Path

from fleet_config.loader import (
    compute_checksum,
    load_category_table,
    table_to_dict,
)
from fleet_kernel.domain.categories import CategoryDefaultsTable

_logger = logging.getLogger("fleet_kernel.config")

DEFAULT_CATEGORY_FILE = Path(__file__).parent / "categories.yaml"


def get_category_table(path: Path | None = None) -> CategoryDefaultsTable:
    """Load the category defaults table (the shipped one unless ``path`` is given).

    Args:
        path: Override path to a category defaults YAML file.

    Returns:
        A frozen ``CategoryDefaultsTable``.
    """
    source = path or DEFAULT_CATEGORY_FILE
    table = load_category_table(source)

    _logger.info(
        "FLEET_CONFIG_TRACE",
        extra={
            "trace_type": "FLEET_CONFIG_TRACE",
            "source": str(source),
            "category_count": len(table),
            "fallback_category": table.fallback_category,
            "checksum": compute_checksum(table_to_dict(table)),
        },
    )
    return table


__all__ = ["DEFAULT_CATEGORY_FILE", "get_category_table"]
