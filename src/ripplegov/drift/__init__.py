"""Golden-path drift detection for governed surfaces."""

from ripplegov.drift.codec import drift_report_from_dict, drift_report_to_dict, finding_to_dict
from ripplegov.drift.comparator import build_policy_error_report, check_surface, json_equal, run_drift
from ripplegov.drift.exceptions import ExceptionScanner, parse_exception_line
from ripplegov.drift.expiry import blame_expiry_filter, expiry_filter
from ripplegov.drift.types import (
    DRIFT_SCHEMA,
    SELF_TARGET_LABEL,
    DriftReport,
    DriftSummary,
    Finding,
    FindingStatus,
    PolicyException,
    compliance_score,
)

__all__ = [
    "DRIFT_SCHEMA",
    "SELF_TARGET_LABEL",
    "DriftReport",
    "DriftSummary",
    "ExceptionScanner",
    "Finding",
    "FindingStatus",
    "PolicyException",
    "blame_expiry_filter",
    "build_policy_error_report",
    "check_surface",
    "compliance_score",
    "drift_report_from_dict",
    "drift_report_to_dict",
    "expiry_filter",
    "finding_to_dict",
    "json_equal",
    "parse_exception_line",
    "run_drift",
]
