"""OpenAPI contract breaking-change detection."""

from ripplegov.contracts.differ import detect_changes, diff_contracts, extract_endpoints, inactive_report
from ripplegov.contracts.types import (
    ADDITIVE_TYPES,
    BREAKING_SCHEMA,
    BREAKING_TYPES,
    BreakingChangeReport,
    ChangeSeverity,
    ChangeType,
    ContractChange,
)

__all__ = [
    "ADDITIVE_TYPES",
    "BREAKING_SCHEMA",
    "BREAKING_TYPES",
    "BreakingChangeReport",
    "ChangeSeverity",
    "ChangeType",
    "ContractChange",
    "detect_changes",
    "diff_contracts",
    "extract_endpoints",
    "inactive_report",
]
