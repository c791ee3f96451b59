"""Fleet compliance report types."""

from __future__ import annotations

from dataclasses import dataclass

FLEET_SCHEMA = "ripple-fleet-compliance/v1"

REASON_REPORT_MISSING = "report-missing"
REASON_UNREACHABLE = "repository-unreachable"
REASON_SCAN_FAILED = "scan-failed"


@dataclass(frozen=True)
class FleetEntry:
    """One row per downstream repository.

    ``reason`` is set only for repositories without a usable drift report;
    such rows score 0 so they drag the fleet average down instead of vanishing.
    """

    repo: str
    compliance_score: int
    critical_drifts: int
    standards_drifts: int
    total_surfaces: int
    compliant: int
    last_scan_date: str | None
    meets_target: bool
    reason: str | None = None


@dataclass(frozen=True)
class FleetSummary:
    total_repos: int
    avg_compliance_score: int
    critical_drift_count: int
    repos_below_target: int
    repos_meeting_target: int


@dataclass(frozen=True)
class FleetComplianceReport:
    timestamp: str
    golden_path_version: str
    minimum_score: int
    fleet: tuple[FleetEntry, ...]
    summary: FleetSummary

    @property
    def status(self) -> str:
        failing = self.summary.critical_drift_count > 0 or self.summary.repos_below_target > 0
        return "fail" if failing else "pass"
