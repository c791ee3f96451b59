"""Drift detection domain types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ripplegov.policy.types import Severity, Strategy
from ripplegov.utils.rounding import round_half_up

DRIFT_SCHEMA = "ripple-fleet-drift/v1"
SELF_TARGET_LABEL = "(self — golden path)"


class FindingStatus(str, Enum):
    """Outcome of comparing one governed surface."""

    COMPLIANT = "compliant"
    DRIFTED = "drifted"
    MISSING = "missing"
    EXCEPTION = "exception"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    def escalate(self, other: FindingStatus) -> FindingStatus:
        """Return the worse of two comparison outcomes."""
        return other if other.rank > self.rank else self


_STATUS_RANK = {
    FindingStatus.COMPLIANT: 0,
    FindingStatus.EXCEPTION: 0,
    FindingStatus.DRIFTED: 1,
    FindingStatus.MISSING: 2,
}


@dataclass(frozen=True)
class PolicyException:
    """Developer-authored override found in a target file."""

    surface_id: str
    justification: str
    file: str
    line: int


@dataclass(frozen=True)
class Finding:
    """Comparison result for one governed surface.

    ``severity`` holds the surface severity value, or ``"error"`` for the
    synthetic finding emitted when the policy itself cannot be loaded.
    """

    surface_id: str
    name: str
    status: FindingStatus
    severity: str
    strategy: str | None = None
    taxonomy_code: str | None = None
    details: tuple[str, ...] = ()
    remediation: tuple[str, ...] = ()

    @property
    def is_drift(self) -> bool:
        return self.status in (FindingStatus.DRIFTED, FindingStatus.MISSING)

    @property
    def is_gating(self) -> bool:
        """Drift that fails the gate (advisory surfaces only report)."""
        if not self.is_drift or self.strategy == Strategy.ADVISORY.value:
            return False
        if self.severity == "error":
            return True
        return self.severity in (Severity.SECURITY_CRITICAL.value, Severity.STANDARDS_REQUIRED.value)


@dataclass(frozen=True)
class DriftSummary:
    total: int
    compliant: int
    drifted: int
    missing: int
    exceptions: int


@dataclass(frozen=True)
class DriftReport:
    """All findings for one target repository at one point in time."""

    timestamp: str
    source_version: str
    target_path: str
    compliance_score: int
    findings: tuple[Finding, ...]
    exceptions: tuple[PolicyException, ...]
    summary: DriftSummary

    @property
    def gating_findings(self) -> tuple[Finding, ...]:
        return tuple(finding for finding in self.findings if finding.is_gating)

    @property
    def status(self) -> str:
        return "fail" if self.gating_findings else "pass"


def compliance_score(findings: tuple[Finding, ...] | list[Finding]) -> int:
    """Percentage of compliant findings; an empty policy is fully compliant."""
    total = len(findings)
    if total == 0:
        return 100
    compliant = sum(1 for finding in findings if finding.status is FindingStatus.COMPLIANT)
    return round_half_up(100 * compliant / total)


def summarize(findings: tuple[Finding, ...] | list[Finding]) -> DriftSummary:
    def count(status: FindingStatus) -> int:
        return sum(1 for finding in findings if finding.status is status)

    return DriftSummary(
        total=len(findings),
        compliant=count(FindingStatus.COMPLIANT),
        drifted=count(FindingStatus.DRIFTED),
        missing=count(FindingStatus.MISSING),
        exceptions=count(FindingStatus.EXCEPTION),
    )
