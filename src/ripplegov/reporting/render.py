"""Human-readable rendering of governance reports.

Console output goes to stderr so ``--json`` keeps stdout machine-readable.
The fleet report can also be rendered as a markdown step summary for
GitHub Actions.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ripplegov.conformance.types import ConformanceReport
from ripplegov.contracts.types import BREAKING_CHANGE_CODE, NON_BREAKING_CHANGE_CODE, BreakingChangeReport
from ripplegov.drift.types import DriftReport, FindingStatus
from ripplegov.fleet.types import FleetComplianceReport

logger = logging.getLogger(__name__)

RULE = "─"
BAR_WIDTH = 20

STATUS_ICONS = {
    FindingStatus.COMPLIANT: "[green]✓[/green]",
    FindingStatus.DRIFTED: "[red]✗[/red]",
    FindingStatus.MISSING: "[red]✗[/red]",
    FindingStatus.EXCEPTION: "[yellow]⊘[/yellow]",
}

BREAKING_REMEDIATION = (
    "Bump the API version (/v1/ -> /v2/) and add migration notes",
    "Or mark old endpoints as deprecated and add new ones alongside",
)


def short_sha(version: str) -> str:
    return version[:8] if version else "unknown"


def render_bar(percentage: int, width: int = BAR_WIDTH) -> str:
    """Fixed-width block bar for a 0-100 percentage."""
    filled = max(0, min(width, int(percentage / 100 * width + 0.5)))
    return "█" * filled + "░" * (width - filled)


def render_drift(report: DriftReport, console: Console) -> None:
    console.print()
    console.print("[bold]Fleet Drift Detection[/bold]")
    console.print(RULE * 40)
    console.print(f"Source: golden-path ({escape(short_sha(report.source_version))})")
    console.print(f"Target: {escape(report.target_path)}")
    console.print(f"Compliance Score: {report.compliance_score}%")
    console.print()

    for finding in report.findings:
        icon = STATUS_ICONS.get(finding.status, "?")
        console.print(
            f"  {icon} {escape(f'[{finding.surface_id}]')} {escape(finding.name)}: "
            f"{finding.status.value} ({escape(finding.severity)})"
        )
        if finding.status is not FindingStatus.COMPLIANT:
            for detail in finding.details:
                console.print(f"      {escape(detail)}")

    summary = report.summary
    console.print()
    console.print(RULE * 40)
    console.print(
        f"Results: {summary.compliant} compliant, {summary.drifted} drifted, "
        f"{summary.missing} missing, {summary.exceptions} exception(s)"
    )

    gating = [finding for finding in report.gating_findings if finding.remediation]
    if gating:
        console.print()
        console.print("[bold]Remediation:[/bold]")
        for finding in gating:
            console.print(f"  {escape(f'[{finding.surface_id}]')} {escape(finding.remediation[0])}")
    console.print()


def render_conformance(report: ConformanceReport, console: Console) -> None:
    console.print()
    console.print("[bold]Golden-Path Conformance[/bold]")
    console.print(RULE * 50)
    console.print(f"Target: {escape(report.target_path)}")
    console.print(f"Score:  {report.score}/{report.max_score} (passing: {report.passing_score})")
    status_style = "green" if report.status == "pass" else "red"
    console.print(f"Status: [{status_style}]{report.status}[/{status_style}]")
    console.print()

    if report.categories:
        for category in report.categories:
            console.print(
                f"  {escape(category.name.ljust(24))} {render_bar(category.percentage)} "
                f"{category.score}/{category.max_score} ({category.percentage}%)"
            )
        console.print()

    failed = [outcome for outcome in report.findings if outcome.status == "fail"]
    if failed:
        console.print(RULE * 50)
        console.print("[bold]Failed Checks:[/bold]")
        console.print()
        for outcome in failed:
            console.print(
                f"  [red]✗[/red] {escape(f'[{outcome.check_id}]')} "
                f"{escape(outcome.description)} ({outcome.max_points} pts)"
            )
            if outcome.remediation:
                console.print(f"    → {escape(outcome.remediation)}")
        console.print()

    passed = [outcome for outcome in report.findings if outcome.status == "pass"]
    if passed:
        console.print("[bold]Passed Checks:[/bold]")
        console.print()
        for outcome in passed:
            console.print(
                f"  [green]✓[/green] {escape(f'[{outcome.check_id}]')} "
                f"{escape(outcome.description)} ({outcome.max_points} pts)"
            )
        console.print()

    console.print(RULE * 50)
    console.print(
        f"Results: {report.summary.passed} passed, {report.summary.failed} failed, "
        f"{report.score}/{report.max_score} points"
    )
    console.print()


def render_breaking(report: BreakingChangeReport, console: Console) -> None:
    console.print()
    console.print("[bold]API Breaking-Change Detection[/bold]")
    console.print(RULE * 49)
    console.print(f"  Baseline: {escape(report.base_ref)}")

    if report.baseline == "not-found":
        console.print(f"  ○ No baseline spec found at ref {escape(repr(report.base_ref))}, skipping")
        console.print("  ○ This is expected for the first release or new branches")
    else:
        breaking = report.breaking
        non_breaking = report.non_breaking
        if breaking:
            console.print()
            console.print(
                f"  [red]✗ {len(breaking)} breaking change(s) detected ({BREAKING_CHANGE_CODE})[/red]"
            )
            for change in breaking:
                console.print(f"    • {escape(change.detail)}")
            console.print()
            console.print("  Remediation:")
            for line in BREAKING_REMEDIATION:
                console.print(f"    - {escape(line)}")
        if non_breaking:
            console.print()
            console.print(
                f"  ○ {len(non_breaking)} non-breaking change(s) ({NON_BREAKING_CHANGE_CODE})"
            )
            for change in non_breaking:
                console.print(f"    • {escape(change.detail)}")
        if not report.changes:
            console.print("  [green]✓ No API changes detected[/green]")

    console.print()
    console.print(f"  Status: {report.status}")
    console.print()


def render_fleet(report: FleetComplianceReport, console: Console) -> None:
    summary = report.summary
    console.print()
    console.print("[bold]Fleet Compliance Report[/bold]")
    console.print(RULE * 40)
    console.print(f"Golden path: {escape(short_sha(report.golden_path_version))}")
    console.print(f"Repos scanned: {summary.total_repos}")
    console.print(f"Average compliance: {summary.avg_compliance_score}%")
    console.print(f"Critical drifts: {summary.critical_drift_count}")
    console.print(f"Repos below target: {summary.repos_below_target}")
    console.print()

    if report.fleet:
        table = Table(show_edge=False, header_style="bold")
        table.add_column("")
        table.add_column("Repo")
        table.add_column("Score", justify="right")
        table.add_column("Critical", justify="right")
        table.add_column("Standards", justify="right")
        table.add_column("Note")
        for entry in report.fleet:
            icon = "[green]✓[/green]" if entry.meets_target else "[red]✗[/red]"
            table.add_row(
                icon,
                escape(entry.repo),
                f"{entry.compliance_score}%",
                str(entry.critical_drifts),
                str(entry.standards_drifts),
                escape(entry.reason or ""),
            )
        console.print(table)
        console.print()

    console.print(RULE * 40)
    console.print(f"Target: {report.minimum_score}% minimum compliance")
    console.print()


def fleet_markdown(report: FleetComplianceReport) -> str:
    """Markdown summary of a fleet report, as shown on a workflow run page."""
    summary = report.summary
    lines = [
        "## Fleet Compliance Report",
        "",
        "| Metric | Value |",
        "|--------|-------|",
        f"| Total Repos | {summary.total_repos} |",
        f"| Avg Compliance | {summary.avg_compliance_score}% |",
        f"| Critical Drifts | {summary.critical_drift_count} |",
        f"| Below Target | {summary.repos_below_target} |",
        "",
    ]
    if report.fleet:
        lines.extend(
            [
                "### Per-Repo Status",
                "",
                "| Repo | Score | Critical | Standards | Status |",
                "|------|-------|----------|-----------|--------|",
            ]
        )
        for entry in report.fleet:
            status = "Pass" if entry.meets_target else "Fail"
            lines.append(
                f"| {entry.repo} | {entry.compliance_score}% | {entry.critical_drifts} "
                f"| {entry.standards_drifts} | {status} |"
            )
    return "\n".join(lines) + "\n"


def append_step_summary(markdown: str, environ: Mapping[str, str] | None = None) -> Path | None:
    """Append markdown to ``$GITHUB_STEP_SUMMARY`` when running in GitHub Actions.

    Returns the summary path written, or None when the variable is unset or
    the file cannot be written.
    """
    env = os.environ if environ is None else environ
    target = env.get("GITHUB_STEP_SUMMARY")
    if not target:
        return None
    path = Path(target)
    try:
        with path.open("a", encoding="utf-8") as handle:
            handle.write(markdown)
    except OSError as exc:
        logger.warning("could not write step summary to %s: %s", path, exc)
        return None
    return path
