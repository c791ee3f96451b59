"""JSON codec for ripple-fleet-drift/v1 reports."""

from __future__ import annotations

from typing import Any

from ripplegov.drift.types import (
    DRIFT_SCHEMA,
    DriftReport,
    DriftSummary,
    Finding,
    FindingStatus,
    PolicyException,
)


def finding_to_dict(finding: Finding) -> dict[str, Any]:
    return {
        "surfaceId": finding.surface_id,
        "name": finding.name,
        "status": finding.status.value,
        "severity": finding.severity,
        "taxonomyCode": finding.taxonomy_code,
        "strategy": finding.strategy,
        "details": list(finding.details),
        "remediation": list(finding.remediation),
    }


def drift_report_to_dict(report: DriftReport) -> dict[str, Any]:
    return {
        "schema": DRIFT_SCHEMA,
        "timestamp": report.timestamp,
        "sourceVersion": report.source_version,
        "targetPath": report.target_path,
        "complianceScore": report.compliance_score,
        "findings": [finding_to_dict(finding) for finding in report.findings],
        "exceptions": [
            {
                "surfaceId": item.surface_id,
                "justification": item.justification,
                "file": item.file,
                "line": item.line,
            }
            for item in report.exceptions
        ],
        "summary": {
            "total": report.summary.total,
            "compliant": report.summary.compliant,
            "drifted": report.summary.drifted,
            "missing": report.summary.missing,
            "exceptions": report.summary.exceptions,
        },
    }


def drift_report_from_dict(payload: dict[str, Any]) -> DriftReport:
    """Load a drift report written by this tool (or its predecessors)."""
    findings = tuple(
        Finding(
            surface_id=str(item["surfaceId"]),
            name=str(item.get("name", item["surfaceId"])),
            status=FindingStatus(item["status"]),
            severity=str(item["severity"]),
            strategy=item.get("strategy"),
            taxonomy_code=item.get("taxonomyCode"),
            details=tuple(item.get("details", [])),
            remediation=tuple(item.get("remediation", [])),
        )
        for item in payload["findings"]
    )
    exceptions = tuple(
        PolicyException(
            surface_id=str(item["surfaceId"]),
            justification=str(item["justification"]),
            file=str(item["file"]),
            line=int(item["line"]),
        )
        for item in payload.get("exceptions", [])
    )
    summary_raw = payload["summary"]
    return DriftReport(
        timestamp=str(payload["timestamp"]),
        source_version=str(payload.get("sourceVersion", "unknown")),
        target_path=str(payload["targetPath"]),
        compliance_score=int(payload["complianceScore"]),
        findings=findings,
        exceptions=exceptions,
        summary=DriftSummary(
            total=int(summary_raw["total"]),
            compliant=int(summary_raw["compliant"]),
            drifted=int(summary_raw["drifted"]),
            missing=int(summary_raw["missing"]),
            exceptions=int(summary_raw["exceptions"]),
        ),
    )

