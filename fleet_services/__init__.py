"""
fleet_services -- Package init and public API.

Responsibility:
    Orchestration services that compose the pure calculation engines
    (fleet_engines/) with the category configuration (fleet_config/) and
    an injected clock.  This is the **only** layer that may load
    configuration or use wall-clock time.

Architecture position:
    Services -- orchestration over engines + kernel + config.

    Dependency direction (enforced by tests/architecture/test_import_boundaries.py):
        fleet_services/ -> fleet_engines/  (allowed)
        fleet_services/ -> fleet_config/   (allowed)
        fleet_services/ -> fleet_kernel/   (allowed)
        fleet_engines/  -> fleet_services/ (FORBIDDEN)
        fleet_kernel/   -> fleet_services/ (FORBIDDEN)
"""

from fleet_kernel.logging_config import get_logger

logger = get_logger("services")

from fleet_services.fleet_analysis_service import (
    FleetAnalysisService,
    FleetCashflowOverview,
)

__all__ = [
    "FleetAnalysisService",
    "FleetCashflowOverview",
]
