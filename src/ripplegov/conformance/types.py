"""Conformance scoring result types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

CONFORMANCE_SCHEMA = "ripple-conformance/v1"

CHECK_FAILED_CODE = "RPL-CONFORM-002"


@dataclass(frozen=True)
class CheckOutcome:
    """Result of running one rubric check."""

    check_id: str
    category: str
    description: str
    status: Literal["pass", "fail"]
    points: int
    max_points: int
    taxonomy_code: str | None
    details: str
    remediation: str | None


@dataclass(frozen=True)
class CategoryResult:
    id: str
    name: str
    score: int
    max_score: int
    percentage: int


@dataclass(frozen=True)
class ConformanceSummary:
    total: int
    passed: int
    failed: int
    score: int
    max_score: int


@dataclass(frozen=True)
class ConformanceReport:
    """Weighted rubric score for one repository."""

    timestamp: str
    target_path: str
    score: int
    max_score: int
    passing_score: int
    status: Literal["pass", "fail"]
    categories: tuple[CategoryResult, ...]
    findings: tuple[CheckOutcome, ...]
    summary: ConformanceSummary
