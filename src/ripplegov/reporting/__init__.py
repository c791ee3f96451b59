"""Report payloads, schema-validated output and console rendering."""

from ripplegov.drift.codec import drift_report_from_dict, drift_report_to_dict, finding_to_dict
from ripplegov.reporting.emitter import (
    DETERMINISTIC_TIMESTAMP,
    SCHEMA_NAMES,
    breaking_report_to_dict,
    conformance_report_to_dict,
    fleet_report_to_dict,
    get_timestamp,
    write_report,
)
from ripplegov.reporting.render import (
    append_step_summary,
    fleet_markdown,
    render_bar,
    render_breaking,
    render_conformance,
    render_drift,
    render_fleet,
)

__all__ = [
    "DETERMINISTIC_TIMESTAMP",
    "SCHEMA_NAMES",
    "append_step_summary",
    "breaking_report_to_dict",
    "conformance_report_to_dict",
    "drift_report_from_dict",
    "drift_report_to_dict",
    "finding_to_dict",
    "fleet_markdown",
    "fleet_report_to_dict",
    "get_timestamp",
    "render_bar",
    "render_breaking",
    "render_conformance",
    "render_drift",
    "render_fleet",
    "write_report",
]
