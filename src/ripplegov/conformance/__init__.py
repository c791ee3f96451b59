"""Golden-path conformance rubric scoring."""

from ripplegov.conformance.scorer import (
    CHECK_RUNNERS,
    build_rubric_error_report,
    evaluate_check,
    run_check,
    score_rubric,
)
from ripplegov.conformance.types import (
    CHECK_FAILED_CODE,
    CONFORMANCE_SCHEMA,
    CategoryResult,
    CheckOutcome,
    ConformanceReport,
    ConformanceSummary,
)

__all__ = [
    "CHECK_FAILED_CODE",
    "CHECK_RUNNERS",
    "CONFORMANCE_SCHEMA",
    "CategoryResult",
    "CheckOutcome",
    "ConformanceReport",
    "ConformanceSummary",
    "build_rubric_error_report",
    "evaluate_check",
    "run_check",
    "score_rubric",
]
