"""ripplegov CLI - golden-path governance gates.

Exit codes for every gate:
  0 - gate passed
  1 - gate failed (drift, low conformance score, breaking API change, fleet below target)
  2 - tooling error (bad configuration, unreadable input, report could not be written)
"""

import json
import logging
from datetime import UTC, datetime
from functools import partial
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler

from ripplegov import __version__
from ripplegov.artifacts.report_json import pretty_dumps
from ripplegov.config import Config, load_config
from ripplegov.conformance.scorer import build_rubric_error_report, score_rubric
from ripplegov.contracts.differ import diff_contracts, inactive_report
from ripplegov.drift.codec import drift_report_to_dict
from ripplegov.drift.comparator import build_policy_error_report, run_drift
from ripplegov.drift.expiry import blame_expiry_filter
from ripplegov.drift.types import SELF_TARGET_LABEL
from ripplegov.fleet.aggregator import aggregate, load_reports_from_dir, scan_fleet
from ripplegov.fleet.types import REASON_REPORT_MISSING
from ripplegov.policy.loader import POLICY_REASON_INVALID, RUBRIC_REASON_INVALID, PolicyError, load_policy, load_rubric
from ripplegov.reporting.emitter import (
    breaking_report_to_dict,
    conformance_report_to_dict,
    fleet_report_to_dict,
    get_timestamp,
    write_report,
)
from ripplegov.reporting.render import (
    append_step_summary,
    fleet_markdown,
    render_breaking,
    render_conformance,
    render_drift,
    render_fleet,
)
from ripplegov.utils.git import head_sha, show_file

logger = logging.getLogger(__name__)

cli = typer.Typer(
    name="ripplegov",
    help="ripplegov - golden-path drift, conformance, API contract and fleet compliance gates",
    no_args_is_help=True,
)
console = Console(stderr=True)

EXIT_PASS = 0
EXIT_GATE_FAILED = 1
EXIT_TOOLING_ERROR = 2

DRIFT_REPORT_NAME = "fleet-drift-report.json"
CONFORMANCE_REPORT_NAME = "conformance-report.json"
BREAKING_REPORT_NAME = "api-breaking-report.json"
FLEET_REPORT_NAME = "fleet-compliance-report.json"


def _version_option_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose)],
        force=True,
    )


@cli.callback()
def _cli_callback(
    version: bool = typer.Option(
        False,
        "--version",
        help="Show ripplegov version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
) -> None:
    """Golden-path governance gates for a fleet of repositories."""
    _ = version
    _configure_logging(verbose)


def _fail_tooling(message: str) -> typer.Exit:
    console.print(f"[bold red]Error:[/bold red] {message}")
    return typer.Exit(code=EXIT_TOOLING_ERROR)


def _load_config(root: Path, **overrides: Any) -> Config:
    """Resolve config for ``root`` with CLI flags applied on top."""
    root = root.resolve()
    if not root.is_dir():
        raise _fail_tooling(f"Directory not found: {root}")
    try:
        config = load_config(root)
    except RuntimeError as e:
        raise _fail_tooling(str(e)) from e
    return config.with_overrides(**overrides)


def _timestamp(config: Config) -> str:
    try:
        return get_timestamp(config.timestamp_mode)
    except ValueError as e:
        raise _fail_tooling(str(e)) from e


def _emit(
    payload: dict[str, Any],
    *,
    json_output: bool,
    output: Path | None,
    ci: bool,
    default_path: Path,
) -> None:
    """Send a report payload to stdout and/or a validated JSON file."""
    if json_output:
        typer.echo(pretty_dumps(payload), nl=False)

    if output is None and not ci:
        return
    out_path = output if output is not None else default_path
    try:
        write_report(payload, out_path)
    except (RuntimeError, OSError) as e:
        raise _fail_tooling(f"Could not write report: {e}") from e
    if not json_output:
        console.print(f"Report written to {out_path}")


def _target_label(config: Config) -> str:
    return SELF_TARGET_LABEL if config.is_self_check else str(config.effective_target.resolve())


JSON_OPTION = typer.Option(False, "--json", help="Print the JSON report to stdout.")
OUTPUT_OPTION = typer.Option(None, "--output", "-o", help="Write the JSON report to this path.")
CI_OPTION = typer.Option(False, "--ci", help="Write the JSON report under its default name.")
TIMESTAMP_OPTION = typer.Option(
    None,
    "--timestamp-mode",
    help="Timestamp mode: deterministic or wallclock",
)
GOLDEN_ROOT_OPTION = typer.Option(
    Path("."),
    "--golden-root",
    help="Golden-path checkout that owns the policy and rubric.",
)


@cli.command()
def drift(
    target: Path | None = typer.Option(
        None,
        "--target",
        "-t",
        help="Repository to check (default: the golden path itself).",
    ),
    golden_root: Path = GOLDEN_ROOT_OPTION,
    policy: Path | None = typer.Option(None, "--policy", help="Fleet policy manifest (JSON)."),
    workers: int | None = typer.Option(None, "--workers", min=1, help="Surfaces compared in parallel."),
    json_output: bool = JSON_OPTION,
    output: Path | None = OUTPUT_OPTION,
    ci: bool = CI_OPTION,
    timestamp_mode: str | None = TIMESTAMP_OPTION,
) -> None:
    """Detect drift of governed surfaces against the golden path."""
    config = _load_config(
        golden_root,
        target_root=target.resolve() if target is not None else None,
        policy_path=policy,
        workers=workers,
        timestamp_mode=timestamp_mode,
    )
    timestamp = _timestamp(config)
    target_root = config.effective_target.resolve()
    if not target_root.is_dir():
        raise _fail_tooling(f"Target repository not found: {target_root}")

    try:
        fleet_policy = load_policy(config.policy_path)
    except PolicyError as e:
        logger.warning("fleet policy unusable: %s", e)
        report = build_policy_error_report(
            reason_code=e.reason_code or POLICY_REASON_INVALID,
            message=f"Fleet policy manifest missing or invalid: {e}",
            target_label=_target_label(config),
            timestamp=timestamp,
        )
    else:
        is_active = blame_expiry_filter(
            target_root,
            fleet_policy.compliance_targets.exception_expiry_days,
            datetime.now(UTC),
        )
        report = run_drift(
            fleet_policy,
            config.golden_root,
            target_root,
            source_version=head_sha(config.golden_root),
            timestamp=timestamp,
            workers=config.workers,
            is_active=is_active,
        )

    _emit(
        drift_report_to_dict(report),
        json_output=json_output,
        output=output,
        ci=ci,
        default_path=config.golden_root / DRIFT_REPORT_NAME,
    )
    if not json_output:
        render_drift(report, console)
    raise typer.Exit(code=EXIT_GATE_FAILED if report.status == "fail" else EXIT_PASS)


@cli.command()
def conform(
    target: Path | None = typer.Option(
        None,
        "--target",
        "-t",
        help="Repository to score (default: the golden path itself).",
    ),
    golden_root: Path = GOLDEN_ROOT_OPTION,
    rubric: Path | None = typer.Option(None, "--rubric", help="Conformance rubric (JSON)."),
    json_output: bool = JSON_OPTION,
    output: Path | None = OUTPUT_OPTION,
    ci: bool = CI_OPTION,
    timestamp_mode: str | None = TIMESTAMP_OPTION,
) -> None:
    """Score a repository against the conformance rubric."""
    config = _load_config(
        golden_root,
        target_root=target.resolve() if target is not None else None,
        rubric_path=rubric,
        timestamp_mode=timestamp_mode,
    )
    timestamp = _timestamp(config)
    target_root = config.effective_target.resolve()
    if not target_root.is_dir():
        raise _fail_tooling(f"Target repository not found: {target_root}")

    label = _target_label(config)
    try:
        loaded = load_rubric(config.rubric_path)
    except PolicyError as e:
        logger.warning("conformance rubric unusable: %s", e)
        report = build_rubric_error_report(
            message=f"Conformance rubric missing or invalid: {e}",
            target_label=label,
            timestamp=timestamp,
            reason_code=e.reason_code or RUBRIC_REASON_INVALID,
        )
    else:
        report = score_rubric(loaded, target_root, target_label=label, timestamp=timestamp)

    _emit(
        conformance_report_to_dict(report),
        json_output=json_output,
        output=output,
        ci=ci,
        default_path=config.golden_root / CONFORMANCE_REPORT_NAME,
    )
    if not json_output:
        render_conformance(report, console)
    raise typer.Exit(code=EXIT_GATE_FAILED if report.status == "fail" else EXIT_PASS)


def _load_json_document(text: str, source: str) -> dict[str, Any]:
    document = json.loads(text)
    if not isinstance(document, dict):
        raise ValueError(f"{source} must contain a JSON object")
    return document


@cli.command(name="api-breaking")
def api_breaking(
    repo_root: Path = typer.Option(Path("."), "--repo-root", help="Repository that publishes the API."),
    base: str | None = typer.Option(None, "--base", help="Git ref holding the baseline contract."),
    baseline_file: Path | None = typer.Option(
        None,
        "--baseline-file",
        help="Read the baseline contract from a file instead of git.",
    ),
    spec: Path | None = typer.Option(None, "--spec", help="Current OpenAPI document (JSON)."),
    json_output: bool = JSON_OPTION,
    output: Path | None = OUTPUT_OPTION,
    ci: bool = CI_OPTION,
    timestamp_mode: str | None = TIMESTAMP_OPTION,
) -> None:
    """Detect breaking changes between the current API contract and a baseline."""
    config = _load_config(repo_root, base_ref=base, timestamp_mode=timestamp_mode)
    timestamp = _timestamp(config)
    root = config.golden_root
    spec_path = spec if spec is not None else root / config.openapi_path
    default_path = root / BREAKING_REPORT_NAME

    if not spec_path.exists():
        if not json_output:
            console.print(f"  ○ No OpenAPI spec at {spec_path}, gate inactive")
        _emit(
            breaking_report_to_dict(inactive_report(base_ref=config.base_ref, timestamp=timestamp)),
            json_output=json_output,
            output=output,
            ci=ci,
            default_path=default_path,
        )
        raise typer.Exit(code=EXIT_PASS)

    try:
        current = _load_json_document(spec_path.read_text(encoding="utf-8"), str(spec_path))
    except (OSError, ValueError) as e:
        raise _fail_tooling(f"Could not read OpenAPI spec {spec_path}: {e}") from e

    baseline: dict[str, Any] | None
    if baseline_file is not None:
        try:
            baseline = _load_json_document(baseline_file.read_text(encoding="utf-8"), str(baseline_file))
        except (OSError, ValueError) as e:
            raise _fail_tooling(f"Could not read baseline {baseline_file}: {e}") from e
    else:
        try:
            relative = spec_path.resolve().relative_to(root).as_posix()
        except ValueError:
            relative = config.openapi_path.as_posix()
        text = show_file(root, config.base_ref, relative)
        try:
            baseline = _load_json_document(text, f"{config.base_ref}:{relative}") if text is not None else None
        except ValueError as e:
            logger.warning("baseline at %s is not usable: %s", config.base_ref, e)
            baseline = None

    report = diff_contracts(baseline, current, base_ref=config.base_ref, timestamp=timestamp)
    _emit(
        breaking_report_to_dict(report),
        json_output=json_output,
        output=output,
        ci=ci,
        default_path=default_path,
    )
    if not json_output:
        render_breaking(report, console)
    raise typer.Exit(code=EXIT_GATE_FAILED if report.status == "fail" else EXIT_PASS)


@cli.command()
def fleet(
    reports: Path | None = typer.Option(
        None,
        "--reports",
        help="Directory of ripple-fleet-drift/v1 JSON reports.",
    ),
    repo: list[Path] = typer.Option(
        [],
        "--repo",
        help="Local checkout to scan directly (repeatable).",
    ),
    expect: list[str] = typer.Option(
        [],
        "--expect",
        help="Repository that must have a report; absent ones score 0 (repeatable).",
    ),
    golden_root: Path = GOLDEN_ROOT_OPTION,
    policy: Path | None = typer.Option(None, "--policy", help="Fleet policy manifest (JSON)."),
    workers: int | None = typer.Option(None, "--workers", min=1, help="Repositories scanned in parallel."),
    json_output: bool = JSON_OPTION,
    output: Path | None = OUTPUT_OPTION,
    ci: bool = CI_OPTION,
    timestamp_mode: str | None = TIMESTAMP_OPTION,
) -> None:
    """Aggregate drift reports into a fleet compliance report."""
    if reports is None and not repo:
        raise _fail_tooling("Provide --reports and/or at least one --repo")

    config = _load_config(golden_root, policy_path=policy, workers=workers, timestamp_mode=timestamp_mode)
    timestamp = _timestamp(config)
    try:
        fleet_policy = load_policy(config.policy_path)
    except PolicyError as e:
        raise _fail_tooling(f"Fleet policy manifest missing or invalid: {e}") from e

    golden_version = head_sha(config.golden_root)
    drift_reports = []
    missing: dict[str, str] = {}

    if reports is not None:
        try:
            loaded, skipped = load_reports_from_dir(reports)
        except FileNotFoundError as e:
            raise _fail_tooling(str(e)) from e
        for name in skipped:
            logger.warning("skipped %s: not a ripple-fleet-drift/v1 report", name)
        drift_reports.extend(loaded)

    if repo:
        scanned, unreachable = scan_fleet(
            fleet_policy,
            config.golden_root,
            repo,
            source_version=golden_version,
            timestamp=timestamp,
            workers=config.workers,
            filter_for=partial(
                blame_expiry_filter,
                expiry_days=fleet_policy.compliance_targets.exception_expiry_days,
                now=datetime.now(UTC),
            ),
        )
        drift_reports.extend(scanned)
        missing.update(unreachable)

    reported = {report.target_path for report in drift_reports}
    for name in expect:
        if name not in reported:
            missing.setdefault(name, REASON_REPORT_MISSING)

    report = aggregate(
        drift_reports,
        targets=fleet_policy.compliance_targets,
        golden_path_version=golden_version,
        timestamp=timestamp,
        missing=missing,
    )

    _emit(
        fleet_report_to_dict(report),
        json_output=json_output,
        output=output,
        ci=ci,
        default_path=config.golden_root / FLEET_REPORT_NAME,
    )
    append_step_summary(fleet_markdown(report))
    if not json_output:
        render_fleet(report, console)
    raise typer.Exit(code=EXIT_GATE_FAILED if report.status == "fail" else EXIT_PASS)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
