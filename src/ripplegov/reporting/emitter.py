"""Versioned JSON payloads for every governance report."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from ripplegov.conformance.types import CONFORMANCE_SCHEMA, ConformanceReport
from ripplegov.contracts.types import BREAKING_SCHEMA, BreakingChangeReport
from ripplegov.drift.types import DRIFT_SCHEMA
from ripplegov.fleet.types import FLEET_SCHEMA, FleetComplianceReport
from ripplegov.utils.json_output import write_json_strict

if TYPE_CHECKING:
    from pathlib import Path

DETERMINISTIC_TIMESTAMP = "1970-01-01T00:00:00Z"

SCHEMA_NAMES = {
    DRIFT_SCHEMA: "fleet_drift",
    CONFORMANCE_SCHEMA: "conformance",
    BREAKING_SCHEMA: "api_breaking",
    FLEET_SCHEMA: "fleet_compliance",
}


def get_timestamp(timestamp_mode: str) -> str:
    """Report timestamp for ``deterministic`` or ``wallclock`` mode."""
    if timestamp_mode == "deterministic":
        return DETERMINISTIC_TIMESTAMP
    if timestamp_mode == "wallclock":
        return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")
    raise ValueError(f"Unsupported timestamp mode: {timestamp_mode}")


def conformance_report_to_dict(report: ConformanceReport) -> dict[str, Any]:
    return {
        "schema": CONFORMANCE_SCHEMA,
        "timestamp": report.timestamp,
        "targetPath": report.target_path,
        "score": report.score,
        "maxScore": report.max_score,
        "passingScore": report.passing_score,
        "status": report.status,
        "categories": [
            {
                "id": category.id,
                "name": category.name,
                "score": category.score,
                "maxScore": category.max_score,
                "percentage": category.percentage,
            }
            for category in report.categories
        ],
        "findings": [
            {
                "checkId": outcome.check_id,
                "category": outcome.category,
                "description": outcome.description,
                "status": outcome.status,
                "points": outcome.points,
                "maxPoints": outcome.max_points,
                "taxonomyCode": outcome.taxonomy_code,
                "details": outcome.details,
                "remediation": outcome.remediation,
            }
            for outcome in report.findings
        ],
        "summary": {
            "total": report.summary.total,
            "passed": report.summary.passed,
            "failed": report.summary.failed,
            "score": report.summary.score,
            "maxScore": report.summary.max_score,
        },
    }


def breaking_report_to_dict(report: BreakingChangeReport) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "schema": BREAKING_SCHEMA,
        "timestamp": report.timestamp,
        "status": report.status,
        "baseRef": report.base_ref,
        "baseline": report.baseline,
    }
    if report.current_version is not None:
        payload["currentVersion"] = report.current_version
    if report.baseline_version is not None:
        payload["baselineVersion"] = report.baseline_version
    payload.update(
        {
            "breaking": len(report.breaking),
            "nonBreaking": len(report.non_breaking),
            "changes": [
                {
                    "type": change.type.value,
                    "severity": change.severity.value,
                    "path": change.path,
                    "method": change.method,
                    "operationId": change.operation_id,
                    "detail": change.detail,
                }
                for change in report.changes
            ],
        }
    )
    return payload


def fleet_report_to_dict(report: FleetComplianceReport) -> dict[str, Any]:
    fleet: list[dict[str, Any]] = []
    for entry in report.fleet:
        row: dict[str, Any] = {
            "repo": entry.repo,
            "complianceScore": entry.compliance_score,
            "criticalDrifts": entry.critical_drifts,
            "standardsDrifts": entry.standards_drifts,
            "totalSurfaces": entry.total_surfaces,
            "compliant": entry.compliant,
            "lastScanDate": entry.last_scan_date,
            "meetsTarget": entry.meets_target,
        }
        if entry.reason is not None:
            row["reason"] = entry.reason
        fleet.append(row)

    return {
        "schema": FLEET_SCHEMA,
        "timestamp": report.timestamp,
        "goldenPathVersion": report.golden_path_version,
        "complianceTargets": {"minimumScore": report.minimum_score},
        "fleet": fleet,
        "summary": {
            "totalRepos": report.summary.total_repos,
            "avgComplianceScore": report.summary.avg_compliance_score,
            "criticalDriftCount": report.summary.critical_drift_count,
            "reposBelowTarget": report.summary.repos_below_target,
            "reposMeetingTarget": report.summary.repos_meeting_target,
        },
    }


def write_report(payload: dict[str, Any], output_path: Path) -> None:
    """Validate a report payload against its versioned schema and write it."""
    schema_name = SCHEMA_NAMES[payload["schema"]]
    write_json_strict(data=payload, output_path=output_path, schema_name=schema_name)
