"""Governed surface comparison against the golden path."""

from __future__ import annotations

import concurrent.futures
import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ripplegov.artifacts.report_json import file_digest
from ripplegov.drift.exceptions import ExceptionScanner
from ripplegov.drift.types import (
    SELF_TARGET_LABEL,
    DriftReport,
    Finding,
    FindingStatus,
    PolicyException,
    compliance_score,
    summarize,
)
from ripplegov.policy.types import DEFAULT_EXCEPTION_EXPIRY_DAYS, FleetPolicy, GovernedSurface, Strategy

logger = logging.getLogger(__name__)

ExceptionFilter = Callable[[PolicyException], bool]

_ABSENT = object()


def _always_active(_exception: PolicyException) -> bool:
    return True


def check_surface(
    surface: GovernedSurface,
    golden_root: Path,
    target_root: Path,
    *,
    scanner: ExceptionScanner | None = None,
    is_active: ExceptionFilter | None = None,
    exception_expiry_days: int = DEFAULT_EXCEPTION_EXPIRY_DAYS,
) -> Finding:
    """Compare one governed surface between the golden path and a target repository.

    Args:
        surface: Surface definition from the fleet policy
        golden_root: Root of the golden-path checkout
        target_root: Root of the repository being checked
        scanner: Exception annotation scanner (default: ExceptionScanner())
        is_active: Caller-supplied expiry check; an exception it rejects is ignored
        exception_expiry_days: Shown in the remediation text of exception findings

    Returns:
        Finding with status compliant, drifted, missing, or exception
    """
    scanner = scanner or ExceptionScanner()
    is_active = is_active or _always_active

    active = [
        item
        for item in scanner.exceptions_for(target_root, surface.id, surface.paths)
        if is_active(item)
    ]
    if active:
        logger.debug("surface %s short-circuited by exception in %s:%d", surface.id, active[0].file, active[0].line)
        return Finding(
            surface_id=surface.id,
            name=surface.name,
            status=FindingStatus.EXCEPTION,
            severity=surface.severity.value,
            strategy=surface.strategy.value,
            taxonomy_code=surface.taxonomy_code,
            details=(f"Exception found: {active[0].justification}",),
            remediation=(
                f"Review exception and renew if still valid (expires after {exception_expiry_days} days)",
            ),
        )

    status = FindingStatus.COMPLIANT
    details: list[str] = []
    remediation: list[str] = []

    for relative in surface.paths:
        golden_file = golden_root / relative
        target_file = target_root / relative

        if not golden_file.exists():
            details.append(f"Source file {relative} not found in golden path (skipped)")
            continue

        if not target_file.exists():
            status = status.escalate(FindingStatus.MISSING)
            details.append(f"File {relative} missing in target repo")
            remediation.append(f"Copy {relative} from golden-path source")
            continue

        if surface.strategy is not Strategy.SYNC:
            # merge and advisory surfaces only enforce existence
            continue

        outcome = _compare_content(golden_file, target_file, surface.checksum_validation)
        if outcome is None:
            details.append(f"Could not compare {relative}")
        elif outcome is False:
            status = status.escalate(FindingStatus.DRIFTED)
            if surface.checksum_validation:
                details.append(f"File {relative} has diverged from golden path (checksum mismatch)")
            else:
                details.append(f"File {relative} content differs from golden path")
            remediation.append(f"Update {relative} to match golden-path version")

    for field_ref in surface.fields:
        golden_file = golden_root / field_ref.file
        target_file = target_root / field_ref.file
        if not golden_file.exists() or not target_file.exists():
            continue

        try:
            golden_doc = _load_json(golden_file)
            target_doc = _load_json(target_file)
        except (OSError, ValueError):
            details.append(f"Could not parse {field_ref.file} for field comparison")
            continue

        golden_value = _lookup(golden_doc, field_ref.key)
        target_value = _lookup(target_doc, field_ref.key)
        if not json_equal(golden_value, target_value):
            status = status.escalate(FindingStatus.DRIFTED)
            details.append(
                f'Field "{field_ref.key}" in {field_ref.file} differs: '
                f"golden-path={_render(golden_value)}, target={_render(target_value)}"
            )
            remediation.append(f'Update "{field_ref.key}" in {field_ref.file} to match golden-path value')

    if status is FindingStatus.COMPLIANT:
        details.append("All governed files match golden path")
        remediation = []

    return Finding(
        surface_id=surface.id,
        name=surface.name,
        status=status,
        severity=surface.severity.value,
        strategy=surface.strategy.value,
        taxonomy_code=surface.taxonomy_code,
        details=tuple(details),
        remediation=tuple(remediation),
    )


def _compare_content(golden_file: Path, target_file: Path, use_checksum: bool) -> bool | None:
    """True when equal, False when different, None when either side is unreadable."""
    try:
        if use_checksum:
            return file_digest(golden_file) == file_digest(target_file)
        return golden_file.read_bytes() == target_file.read_bytes()
    except OSError as exc:
        logger.warning("comparison of %s failed: %s", target_file, exc)
        return None


def _load_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _lookup(document: Any, key: str) -> Any:
    if isinstance(document, dict) and key in document:
        return document[key]
    return _ABSENT


def json_equal(left: Any, right: Any) -> bool:
    """Structural equality for decoded JSON values.

    Objects compare without regard to key order, arrays element by element.
    Booleans never equal numbers, unlike plain ``==``.
    """
    if left is _ABSENT or right is _ABSENT:
        return left is right
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, dict):
        if not isinstance(right, dict) or left.keys() != right.keys():
            return False
        return all(json_equal(left[key], right[key]) for key in left)
    if isinstance(left, list):
        if not isinstance(right, list) or len(left) != len(right):
            return False
        return all(json_equal(a, b) for a, b in zip(left, right, strict=True))
    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        return left == right
    return type(left) is type(right) and left == right


def _render(value: Any) -> str:
    if value is _ABSENT:
        return "<absent>"
    return json.dumps(value, sort_keys=True, ensure_ascii=False)


def run_drift(
    policy: FleetPolicy,
    golden_root: Path,
    target_root: Path,
    *,
    source_version: str,
    timestamp: str,
    workers: int = 1,
    is_active: ExceptionFilter | None = None,
) -> DriftReport:
    """Check every governed surface and assemble a drift report.

    Surfaces are independent, so ``workers > 1`` evaluates them on a bounded
    thread pool; findings are keyed by surface id and emitted in policy order.
    """
    golden_root = golden_root.resolve()
    target_root = target_root.resolve()
    scanner = ExceptionScanner()
    expiry_days = policy.compliance_targets.exception_expiry_days

    def evaluate(surface: GovernedSurface) -> tuple[Finding, list[PolicyException]]:
        finding = check_surface(
            surface,
            golden_root,
            target_root,
            scanner=scanner,
            is_active=is_active,
            exception_expiry_days=expiry_days,
        )
        exceptions: list[PolicyException] = []
        if finding.status is FindingStatus.EXCEPTION:
            exceptions = [
                item
                for item in scanner.exceptions_for(target_root, surface.id, surface.paths)
                if is_active is None or is_active(item)
            ]
        return finding, exceptions

    results: dict[str, tuple[Finding, list[PolicyException]]] = {}
    if workers > 1 and len(policy.governed_surfaces) > 1:
        with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {executor.submit(evaluate, surface): surface.id for surface in policy.governed_surfaces}
            for future in concurrent.futures.as_completed(futures):
                results[futures[future]] = future.result()
    else:
        for surface in policy.governed_surfaces:
            results[surface.id] = evaluate(surface)

    findings: list[Finding] = []
    exceptions: list[PolicyException] = []
    for surface in policy.governed_surfaces:
        finding, surface_exceptions = results[surface.id]
        findings.append(finding)
        exceptions.extend(surface_exceptions)

    label = SELF_TARGET_LABEL if target_root == golden_root else str(target_root)
    logger.debug("drift run over %d surfaces for %s", len(findings), label)
    return DriftReport(
        timestamp=timestamp,
        source_version=source_version,
        target_path=label,
        compliance_score=compliance_score(findings),
        findings=tuple(findings),
        exceptions=tuple(exceptions),
        summary=summarize(findings),
    )


def build_policy_error_report(
    *,
    reason_code: str,
    message: str,
    target_label: str,
    timestamp: str,
) -> DriftReport:
    """Parseable drift report for a policy manifest that could not be loaded."""
    finding = Finding(
        surface_id="N/A",
        name="policy-load",
        status=FindingStatus.DRIFTED,
        severity="error",
        taxonomy_code=reason_code,
        details=(message,),
        remediation=("Ensure the fleet policy manifest exists and is valid JSON",),
    )
    return DriftReport(
        timestamp=timestamp,
        source_version="unknown",
        target_path=target_label,
        compliance_score=0,
        findings=(finding,),
        exceptions=(),
        summary=summarize([finding]),
    )
