"""Fleet-wide aggregation of per-repository drift reports."""

from __future__ import annotations

import concurrent.futures
import json
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import replace
from pathlib import Path

from ripplegov.drift.codec import drift_report_from_dict
from ripplegov.drift.comparator import ExceptionFilter, run_drift
from ripplegov.drift.types import DRIFT_SCHEMA, DriftReport, Finding
from ripplegov.fleet.types import (
    REASON_REPORT_MISSING,
    REASON_SCAN_FAILED,
    REASON_UNREACHABLE,
    FleetComplianceReport,
    FleetEntry,
    FleetSummary,
)
from ripplegov.policy.types import ComplianceTargets, FleetPolicy, Severity
from ripplegov.utils.rounding import round_half_up

logger = logging.getLogger(__name__)


def _count_drifts(findings: Iterable[Finding], severity: Severity) -> int:
    return sum(1 for finding in findings if finding.is_drift and finding.severity == severity.value)


def entry_for_report(report: DriftReport, minimum_score: int) -> FleetEntry:
    return FleetEntry(
        repo=report.target_path,
        compliance_score=report.compliance_score,
        critical_drifts=_count_drifts(report.findings, Severity.SECURITY_CRITICAL),
        standards_drifts=_count_drifts(report.findings, Severity.STANDARDS_REQUIRED),
        total_surfaces=report.summary.total,
        compliant=report.summary.compliant,
        last_scan_date=report.timestamp,
        meets_target=report.compliance_score >= minimum_score,
    )


def missing_entry(repo: str, reason: str = REASON_REPORT_MISSING) -> FleetEntry:
    return FleetEntry(
        repo=repo,
        compliance_score=0,
        critical_drifts=0,
        standards_drifts=0,
        total_surfaces=0,
        compliant=0,
        last_scan_date=None,
        meets_target=False,
        reason=reason,
    )


def _unique_repo(repo: str, taken: Mapping[str, FleetEntry]) -> str:
    if repo not in taken:
        return repo
    suffix = 2
    while f"{repo}#{suffix}" in taken:
        suffix += 1
    logger.warning("duplicate drift report for %s; listed as %s#%d", repo, repo, suffix)
    return f"{repo}#{suffix}"


def aggregate(
    reports: Iterable[DriftReport],
    *,
    targets: ComplianceTargets,
    golden_path_version: str,
    timestamp: str,
    missing: Mapping[str, str] | None = None,
) -> FleetComplianceReport:
    """Reduce drift reports to a fleet compliance report.

    Args:
        reports: One drift report per scanned repository
        targets: Policy compliance targets (minimum score)
        golden_path_version: Golden-path commit the fleet is measured against
        timestamp: Report timestamp
        missing: Repositories with no report, mapped to the reason

    Returns:
        FleetComplianceReport with rows sorted by repository
        (a repository reported more than once gets one row per report,
        suffixed `#2`, `#3`, ...)
    """
    minimum = targets.minimum_score
    entries: dict[str, FleetEntry] = {}
    for report in reports:
        repo = _unique_repo(report.target_path, entries)
        entries[repo] = replace(entry_for_report(report, minimum), repo=repo)
    for repo, reason in (missing or {}).items():
        if repo not in entries:
            entries[repo] = missing_entry(repo, reason)

    fleet = tuple(entries[repo] for repo in sorted(entries))
    total = len(fleet)
    below = sum(1 for entry in fleet if not entry.meets_target)
    average = round_half_up(sum(entry.compliance_score for entry in fleet) / total) if total else 0

    return FleetComplianceReport(
        timestamp=timestamp,
        golden_path_version=golden_path_version,
        minimum_score=minimum,
        fleet=fleet,
        summary=FleetSummary(
            total_repos=total,
            avg_compliance_score=average,
            critical_drift_count=sum(entry.critical_drifts for entry in fleet),
            repos_below_target=below,
            repos_meeting_target=total - below,
        ),
    )


def load_reports_from_dir(reports_dir: Path) -> tuple[list[DriftReport], list[str]]:
    """Load every drift report JSON file in a directory.

    Returns:
        (reports, skipped) where skipped names files that were not valid drift reports
    """
    if not reports_dir.is_dir():
        raise FileNotFoundError(f"Reports directory not found: {reports_dir}")

    reports: list[DriftReport] = []
    skipped: list[str] = []
    for path in sorted(reports_dir.glob("*.json")):
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict) or payload.get("schema") != DRIFT_SCHEMA:
                skipped.append(path.name)
                continue
            reports.append(drift_report_from_dict(payload))
        except (OSError, ValueError, KeyError, TypeError) as exc:
            logger.warning("skipping %s: %s", path.name, exc)
            skipped.append(path.name)
    return reports, skipped


def scan_fleet(
    policy: FleetPolicy,
    golden_root: Path,
    targets: Iterable[Path],
    *,
    source_version: str,
    timestamp: str,
    workers: int = 4,
    filter_for: Callable[[Path], ExceptionFilter] | None = None,
) -> tuple[list[DriftReport], dict[str, str]]:
    """Run drift detection against several local checkouts on a bounded pool.

    ``filter_for(target)`` supplies the exception expiry predicate for each
    checkout, so annotations age the same way they do for a single drift run.

    Returns:
        (reports, missing) where missing maps unscannable repositories to a reason
    """
    reports: list[DriftReport] = []
    missing: dict[str, str] = {}
    reachable: list[Path] = []
    for target in targets:
        resolved = target.resolve()
        if resolved.is_dir():
            reachable.append(resolved)
        else:
            missing[str(resolved)] = REASON_UNREACHABLE

    def scan(target: Path) -> DriftReport:
        return run_drift(
            policy,
            golden_root,
            target,
            source_version=source_version,
            timestamp=timestamp,
            is_active=filter_for(target) if filter_for is not None else None,
        )

    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
        futures = {executor.submit(scan, target): target for target in reachable}
        for future in concurrent.futures.as_completed(futures):
            target = futures[future]
            try:
                reports.append(future.result())
            except OSError as exc:
                logger.warning("scan of %s failed: %s", target, exc)
                missing[str(target)] = f"{REASON_SCAN_FAILED}: {exc}"

    return reports, missing
