"""Fleet-wide compliance aggregation."""

from ripplegov.fleet.aggregator import aggregate, load_reports_from_dir, missing_entry, scan_fleet
from ripplegov.fleet.types import (
    FLEET_SCHEMA,
    REASON_REPORT_MISSING,
    FleetComplianceReport,
    FleetEntry,
    FleetSummary,
)

__all__ = [
    "FLEET_SCHEMA",
    "REASON_REPORT_MISSING",
    "FleetComplianceReport",
    "FleetEntry",
    "FleetSummary",
    "aggregate",
    "load_reports_from_dir",
    "missing_entry",
    "scan_fleet",
]
