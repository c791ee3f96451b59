"""Console and markdown rendering."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console

from ripplegov.conformance.scorer import score_rubric
from ripplegov.contracts.differ import diff_contracts
from ripplegov.drift.comparator import build_policy_error_report
from ripplegov.fleet.aggregator import aggregate
from ripplegov.policy.loader import parse_rubric
from ripplegov.policy.types import ComplianceTargets
from ripplegov.reporting.render import (
    append_step_summary,
    fleet_markdown,
    render_bar,
    render_breaking,
    render_conformance,
    render_drift,
    render_fleet,
)

if TYPE_CHECKING:
    from pathlib import Path


def _console() -> Console:
    return Console(record=True, width=120, color_system=None)


def _fleet_report():
    return aggregate(
        [],
        targets=ComplianceTargets(minimum_score=80),
        golden_path_version="0123456789abcdef",
        timestamp="ts",
        missing={"org/a": "report-missing"},
    )


def test_render_bar_widths() -> None:
    assert render_bar(0) == "░" * 20
    assert render_bar(100) == "█" * 20
    assert render_bar(50) == "█" * 10 + "░" * 10


def test_drift_render_keeps_bracketed_surface_ids() -> None:
    console = _console()
    report = build_policy_error_report(
        reason_code="RPL-FLEET-004", message="policy gone", target_label="(self — golden path)", timestamp="ts"
    )

    render_drift(report, console)

    text = console.export_text()
    assert "[N/A] policy-load" in text
    assert "policy gone" in text
    assert "Remediation:" in text


def test_conformance_render_lists_failed_checks(target: Path) -> None:
    rubric = parse_rubric(
        {
            "passingScore": 5,
            "categories": [
                {
                    "id": "docs",
                    "name": "Documentation",
                    "checks": [
                        {
                            "id": "D1",
                            "type": "file-exists",
                            "path": "README.md",
                            "points": 5,
                            "description": "README present",
                            "remediation": "Add a README",
                        }
                    ],
                }
            ],
        }
    )
    console = _console()

    render_conformance(score_rubric(rubric, target, target_label="t", timestamp="ts"), console)

    text = console.export_text()
    assert "Failed Checks:" in text
    assert "[D1] README present (5 pts)" in text
    assert "→ Add a README" in text


def test_breaking_render_lists_details() -> None:
    report = diff_contracts({"paths": {"/a": {"get": {}}}}, {"paths": {}}, base_ref="main", timestamp="ts")
    console = _console()

    render_breaking(report, console)

    text = console.export_text()
    assert "1 breaking change(s) detected (RPL-API-002)" in text
    assert "Endpoint removed: GET /a" in text


def test_fleet_render_and_markdown() -> None:
    report = _fleet_report()
    console = _console()

    render_fleet(report, console)
    markdown = fleet_markdown(report)

    assert "Golden path: 01234567" in console.export_text()
    assert "| Total Repos | 1 |" in markdown
    assert "| org/a | 0% | 0 | 0 | Fail |" in markdown


def test_step_summary_appends_when_configured(tmp_path: Path) -> None:
    summary = tmp_path / "summary.md"
    summary.write_text("existing\n", encoding="utf-8")

    written = append_step_summary("## Fleet\n", {"GITHUB_STEP_SUMMARY": str(summary)})

    assert written == summary
    assert summary.read_text(encoding="utf-8") == "existing\n## Fleet\n"


def test_step_summary_noop_outside_actions() -> None:
    assert append_step_summary("## Fleet\n", {}) is None
