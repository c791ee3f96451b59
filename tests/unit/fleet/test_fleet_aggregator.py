"""Fleet aggregation of per-repository drift reports."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from ripplegov.drift.codec import drift_report_to_dict
from ripplegov.drift.expiry import expiry_filter
from ripplegov.drift.types import SELF_TARGET_LABEL, DriftReport, DriftSummary, Finding, FindingStatus
from ripplegov.fleet.aggregator import aggregate, load_reports_from_dir, scan_fleet
from ripplegov.fleet.types import REASON_REPORT_MISSING, REASON_UNREACHABLE
from ripplegov.policy.loader import parse_policy
from ripplegov.policy.types import ComplianceTargets

if TYPE_CHECKING:
    from pathlib import Path

TARGETS = ComplianceTargets(minimum_score=80)
SELF = SELF_TARGET_LABEL


def _finding(status: FindingStatus, severity: str) -> Finding:
    return Finding(surface_id=f"S-{status.value}-{severity}", name="s", status=status, severity=severity)


def _report(repo: str, score: int, findings: tuple[Finding, ...] = ()) -> DriftReport:
    compliant = sum(1 for f in findings if f.status is FindingStatus.COMPLIANT)
    return DriftReport(
        timestamp="2026-01-01T00:00:00Z",
        source_version="abc",
        target_path=repo,
        compliance_score=score,
        findings=findings,
        exceptions=(),
        summary=DriftSummary(
            total=len(findings),
            compliant=compliant,
            drifted=sum(1 for f in findings if f.status is FindingStatus.DRIFTED),
            missing=sum(1 for f in findings if f.status is FindingStatus.MISSING),
            exceptions=0,
        ),
    )


def test_single_critical_drift_fails_fleet() -> None:
    reports = [
        _report("org/a", 90),
        _report("org/b", 85, (_finding(FindingStatus.MISSING, "security-critical"),)),
    ]

    report = aggregate(reports, targets=TARGETS, golden_path_version="abc", timestamp="ts")

    assert report.summary.critical_drift_count == 1
    assert report.summary.repos_below_target == 0
    assert report.summary.avg_compliance_score == 88
    assert report.status == "fail"


def test_drift_counts_by_severity() -> None:
    findings = (
        _finding(FindingStatus.DRIFTED, "security-critical"),
        _finding(FindingStatus.DRIFTED, "standards-required"),
        _finding(FindingStatus.MISSING, "standards-required"),
        _finding(FindingStatus.EXCEPTION, "security-critical"),
        _finding(FindingStatus.DRIFTED, "advisory"),
    )
    report = aggregate([_report("org/a", 40, findings)], targets=TARGETS, golden_path_version="abc", timestamp="ts")

    (entry,) = report.fleet
    assert entry.critical_drifts == 1
    assert entry.standards_drifts == 2
    assert entry.total_surfaces == 5
    assert not entry.meets_target


def test_meets_target_is_inclusive() -> None:
    report = aggregate([_report("org/a", 80)], targets=TARGETS, golden_path_version="abc", timestamp="ts")
    assert report.fleet[0].meets_target
    assert report.status == "pass"


def test_missing_repository_scores_zero_with_reason() -> None:
    report = aggregate(
        [_report("org/a", 100)],
        targets=TARGETS,
        golden_path_version="abc",
        timestamp="ts",
        missing={"org/b": REASON_REPORT_MISSING},
    )

    assert [entry.repo for entry in report.fleet] == ["org/a", "org/b"]
    missing = report.fleet[1]
    assert missing.compliance_score == 0
    assert missing.reason == REASON_REPORT_MISSING
    assert missing.last_scan_date is None
    assert report.summary.avg_compliance_score == 50
    assert report.summary.repos_below_target == 1
    assert report.status == "fail"


def test_empty_fleet() -> None:
    report = aggregate([], targets=TARGETS, golden_path_version="abc", timestamp="ts")
    assert report.summary.total_repos == 0
    assert report.summary.avg_compliance_score == 0
    assert report.status == "pass"


def test_rows_sorted_regardless_of_input_order() -> None:
    reports = [_report("org/c", 90), _report("org/a", 90), _report("org/b", 90)]
    report = aggregate(reports, targets=TARGETS, golden_path_version="abc", timestamp="ts")
    assert [entry.repo for entry in report.fleet] == ["org/a", "org/b", "org/c"]


def test_load_reports_skips_foreign_files(tmp_path: Path) -> None:
    (tmp_path / "a.json").write_text(json.dumps(drift_report_to_dict(_report("org/a", 75))), encoding="utf-8")
    (tmp_path / "other.json").write_text(json.dumps({"schema": "something-else/v1"}), encoding="utf-8")
    (tmp_path / "broken.json").write_text("{", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    reports, skipped = load_reports_from_dir(tmp_path)

    assert [r.target_path for r in reports] == ["org/a"]
    assert reports[0].compliance_score == 75
    assert sorted(skipped) == ["broken.json", "other.json"]


def test_load_reports_requires_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_reports_from_dir(tmp_path / "absent")


def test_scan_fleet_marks_unreachable_checkouts(golden: Path, tmp_path: Path, make_files) -> None:
    make_files(golden, {"README.md": "hello"})
    repo_a = make_files(tmp_path / "repo-a", {"README.md": "hello"})
    repo_b = make_files(tmp_path / "repo-b", {"README.md": "changed"})
    policy = parse_policy(
        {
            "governedSurfaces": [
                {
                    "id": "FLEET-SURF-001",
                    "name": "readme",
                    "severity": "security-critical",
                    "strategy": "sync",
                    "paths": ["README.md"],
                }
            ]
        }
    )

    reports, missing = scan_fleet(
        policy,
        golden,
        [repo_a, repo_b, tmp_path / "gone"],
        source_version="abc",
        timestamp="ts",
        workers=2,
    )

    scores = {report.target_path: report.compliance_score for report in reports}
    assert scores == {str(repo_a.resolve()): 100, str(repo_b.resolve()): 0}
    assert missing == {str((tmp_path / "gone").resolve()): REASON_UNREACHABLE}


def test_scan_fleet_applies_exception_expiry_per_target(golden: Path, tmp_path: Path, make_files) -> None:
    make_files(golden, {"SECURITY.md": "report to security@example.org\n"})
    repo = make_files(
        tmp_path / "repo",
        {"SECURITY.md": "# fleet-policy-exception: FLEET-SURF-003 — local contact\nreport to ops@example.org\n"},
    )
    policy = parse_policy(
        {
            "governedSurfaces": [
                {
                    "id": "FLEET-SURF-003",
                    "name": "Security policy",
                    "severity": "security-critical",
                    "strategy": "sync",
                    "paths": ["SECURITY.md"],
                }
            ],
            "complianceTargets": {"minimumScore": 80, "exceptionExpiryDays": 90},
        }
    )
    now = datetime(2026, 1, 1, tzinfo=UTC)
    seen: list[Path] = []

    def filter_for(target: Path):
        seen.append(target)
        return expiry_filter(90, lambda _file, _line: datetime(2020, 1, 1, tzinfo=UTC), now)

    active, _ = scan_fleet(policy, golden, [repo], source_version="abc", timestamp="ts")
    expired, _ = scan_fleet(policy, golden, [repo], source_version="abc", timestamp="ts", filter_for=filter_for)

    assert seen == [repo.resolve()]
    assert active[0].findings[0].status is FindingStatus.EXCEPTION
    assert expired[0].findings[0].status is FindingStatus.DRIFTED
    fleet = aggregate(expired, targets=TARGETS, golden_path_version="abc", timestamp="ts")
    assert fleet.fleet[0].critical_drifts == 1
    assert fleet.status == "fail"


def test_reports_sharing_a_repo_each_keep_a_row(tmp_path: Path) -> None:
    for name, repo, score in [("a.json", SELF, 100), ("b.json", "org/b", 20), ("c.json", SELF, 60)]:
        (tmp_path / name).write_text(json.dumps(drift_report_to_dict(_report(repo, score))), encoding="utf-8")

    reports, _ = load_reports_from_dir(tmp_path)
    report = aggregate(reports, targets=TARGETS, golden_path_version="abc", timestamp="ts")

    assert [entry.repo for entry in report.fleet] == [SELF, f"{SELF}#2", "org/b"]
    assert [entry.compliance_score for entry in report.fleet] == [100, 60, 20]
    assert report.summary.total_repos == 3
    assert report.summary.avg_compliance_score == 60
