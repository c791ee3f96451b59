"""Deterministic rubric scoring for golden-path conformance."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from pathlib import Path

from ripplegov.conformance.types import (
    CHECK_FAILED_CODE,
    CategoryResult,
    CheckOutcome,
    ConformanceReport,
    ConformanceSummary,
)
from ripplegov.policy.loader import RUBRIC_REASON_INVALID
from ripplegov.policy.types import DEFAULT_PASSING_SCORE, CheckType, Rubric, RubricCheck
from ripplegov.utils.rounding import round_half_up

logger = logging.getLogger(__name__)

PACKAGE_MANIFEST = "package.json"


def _check_file_exists(check: RubricCheck, target_root: Path) -> bool:
    return bool(check.path) and (target_root / check.path).exists()


def _check_file_exists_any(check: RubricCheck, target_root: Path) -> bool:
    return any((target_root / candidate).exists() for candidate in check.paths)


def _check_json_field(check: RubricCheck, target_root: Path) -> bool:
    if not check.path or not check.json_field:
        return False
    document = _read_json(target_root / check.path)
    if not isinstance(document, dict):
        return False
    value = document.get(check.json_field)
    return value is not None and value != ""


def _check_script_exists(check: RubricCheck, target_root: Path) -> bool:
    if not check.script:
        return False
    manifest = _read_json(target_root / (check.path or PACKAGE_MANIFEST))
    if not isinstance(manifest, dict):
        return False
    scripts = manifest.get("scripts")
    if not isinstance(scripts, dict):
        return False
    return bool(scripts.get(check.script))


def _check_file_not_tracked(check: RubricCheck, target_root: Path) -> bool:
    if not check.pattern:
        return False
    ignore_file = target_root / check.gitignore_path
    if not ignore_file.is_file():
        return False
    try:
        pattern = re.compile(check.pattern)
        lines = ignore_file.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError, re.error) as exc:
        logger.debug("check %s could not evaluate %s: %s", check.id, ignore_file, exc)
        return False
    return any(pattern.search(line.strip()) for line in lines)


def _read_json(path: Path) -> object | None:
    if not path.is_file():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("could not read %s as JSON: %s", path, exc)
        return None


CHECK_RUNNERS: dict[CheckType, Callable[[RubricCheck, Path], bool]] = {
    CheckType.FILE_EXISTS: _check_file_exists,
    CheckType.FILE_EXISTS_ANY: _check_file_exists_any,
    CheckType.JSON_FIELD: _check_json_field,
    CheckType.SCRIPT_EXISTS: _check_script_exists,
    CheckType.FILE_NOT_TRACKED: _check_file_not_tracked,
}


def run_check(check: RubricCheck, target_root: Path) -> bool:
    """Evaluate one rubric check against a repository root.

    A check whose type this engine does not know evaluates to False.
    """
    if check.type is None:
        logger.warning("check %s has unknown type %r", check.id, check.type_name)
        return False
    return CHECK_RUNNERS[check.type](check, target_root)


def evaluate_check(check: RubricCheck, category_id: str, target_root: Path) -> CheckOutcome:
    """Run a check and wrap the verdict as a reportable outcome."""
    if check.type is None:
        return CheckOutcome(
            check_id=check.id,
            category=category_id,
            description=check.description,
            status="fail",
            points=0,
            max_points=check.points,
            taxonomy_code=CHECK_FAILED_CODE,
            details=f"Unknown check type: {check.type_name}",
            remediation=check.remediation,
        )

    passed = run_check(check, target_root)
    return CheckOutcome(
        check_id=check.id,
        category=category_id,
        description=check.description,
        status="pass" if passed else "fail",
        points=check.points if passed else 0,
        max_points=check.points,
        taxonomy_code=None if passed else CHECK_FAILED_CODE,
        details="Check passed" if passed else f"Missing: {check.description}",
        remediation=None if passed else check.remediation,
    )


def score_rubric(rubric: Rubric, target_root: Path, *, target_label: str, timestamp: str) -> ConformanceReport:
    """Score a repository against every rubric category."""
    findings: list[CheckOutcome] = []
    categories: list[CategoryResult] = []

    for category in rubric.categories:
        outcomes = [evaluate_check(check, category.id, target_root) for check in category.checks]
        category_score = sum(outcome.points for outcome in outcomes)
        category_max = sum(outcome.max_points for outcome in outcomes)
        categories.append(
            CategoryResult(
                id=category.id,
                name=category.name,
                score=category_score,
                max_score=category_max,
                percentage=round_half_up(100 * category_score / category_max) if category_max > 0 else 100,
            )
        )
        findings.extend(outcomes)

    score = sum(outcome.points for outcome in findings)
    max_score = sum(outcome.max_points for outcome in findings)
    passed = sum(1 for outcome in findings if outcome.status == "pass")

    return ConformanceReport(
        timestamp=timestamp,
        target_path=target_label,
        score=score,
        max_score=max_score,
        passing_score=rubric.passing_score,
        status="pass" if score >= rubric.passing_score else "fail",
        categories=tuple(categories),
        findings=tuple(findings),
        summary=ConformanceSummary(
            total=len(findings),
            passed=passed,
            failed=len(findings) - passed,
            score=score,
            max_score=max_score,
        ),
    )


def build_rubric_error_report(
    *,
    message: str,
    target_label: str,
    timestamp: str,
    reason_code: str = RUBRIC_REASON_INVALID,
) -> ConformanceReport:
    """Parseable conformance report for a rubric that could not be loaded."""
    finding = CheckOutcome(
        check_id="N/A",
        category="system",
        description=message,
        status="fail",
        points=0,
        max_points=0,
        taxonomy_code=reason_code,
        details=message,
        remediation="Ensure the conformance rubric exists and is valid JSON",
    )
    return ConformanceReport(
        timestamp=timestamp,
        target_path=target_label,
        score=0,
        max_score=100,
        passing_score=DEFAULT_PASSING_SCORE,
        status="fail",
        categories=(),
        findings=(finding,),
        summary=ConformanceSummary(total=1, passed=0, failed=1, score=0, max_score=100),
    )
