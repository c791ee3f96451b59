"""Surface comparison between a golden path and a target repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from ripplegov.drift.comparator import check_surface, json_equal
from ripplegov.drift.types import FindingStatus
from ripplegov.policy.types import FieldRef, GovernedSurface, Severity, Strategy

if TYPE_CHECKING:
    from pathlib import Path

ESLINT = "export default [\n  { rules: { 'no-console': 'error' } },\n]\n"


def _surface(**overrides) -> GovernedSurface:
    values = {
        "id": "FLEET-SURF-001",
        "name": "ESLint configuration",
        "severity": Severity.STANDARDS_REQUIRED,
        "strategy": Strategy.SYNC,
        "paths": ("eslint.config.js",),
        "checksum_validation": True,
    }
    values.update(overrides)
    return GovernedSurface(**values)


def test_identical_sync_file_is_compliant(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"eslint.config.js": ESLINT})
    make_files(target, {"eslint.config.js": ESLINT})

    finding = check_surface(_surface(), golden, target)

    assert finding.status is FindingStatus.COMPLIANT
    assert finding.details == ("All governed files match golden path",)
    assert finding.remediation == ()


def test_changed_rule_is_drift_with_update_remediation(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"eslint.config.js": ESLINT})
    make_files(target, {"eslint.config.js": ESLINT.replace("'error'", "'warn'")})

    finding = check_surface(_surface(), golden, target)

    assert finding.status is FindingStatus.DRIFTED
    assert finding.remediation == ("Update eslint.config.js to match golden-path version",)
    assert finding.is_gating


def test_raw_content_compare_without_checksum(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"eslint.config.js": ESLINT})
    make_files(target, {"eslint.config.js": ESLINT + "\n"})

    finding = check_surface(_surface(checksum_validation=False), golden, target)

    assert finding.status is FindingStatus.DRIFTED


def test_missing_target_file(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"eslint.config.js": ESLINT})

    finding = check_surface(_surface(), golden, target)

    assert finding.status is FindingStatus.MISSING
    assert finding.remediation == ("Copy eslint.config.js from golden-path source",)


def test_missing_outranks_drifted(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"a.js": "a", "b.js": "b"})
    make_files(target, {"a.js": "changed"})

    finding = check_surface(_surface(paths=("a.js", "b.js")), golden, target)

    assert finding.status is FindingStatus.MISSING
    assert len(finding.remediation) == 2


def test_golden_file_absent_is_skipped(golden: Path, target: Path) -> None:
    finding = check_surface(_surface(paths=("nowhere.js",)), golden, target)

    assert finding.status is FindingStatus.COMPLIANT
    assert "nowhere.js not found in golden path (skipped)" in finding.details[0]


@pytest.mark.parametrize("strategy", [Strategy.MERGE, Strategy.ADVISORY])
def test_merge_and_advisory_only_require_existence(
    strategy: Strategy, golden: Path, target: Path, make_files
) -> None:
    make_files(golden, {"eslint.config.js": ESLINT})
    make_files(target, {"eslint.config.js": "totally different"})

    finding = check_surface(_surface(strategy=strategy), golden, target)

    assert finding.status is FindingStatus.COMPLIANT


def test_advisory_drift_never_gates(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"eslint.config.js": ESLINT})

    finding = check_surface(
        _surface(severity=Severity.ADVISORY, strategy=Strategy.ADVISORY), golden, target
    )

    assert finding.status is FindingStatus.MISSING
    assert not finding.is_gating


def test_field_mismatch_names_both_values(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"package.json": {"packageManager": "pnpm@9.1.0"}})
    make_files(target, {"package.json": {"packageManager": "pnpm@8.0.0"}})
    surface = _surface(
        strategy=Strategy.MERGE,
        paths=("package.json",),
        fields=(FieldRef(file="package.json", key="packageManager"),),
    )

    finding = check_surface(surface, golden, target)

    assert finding.status is FindingStatus.DRIFTED
    assert '"pnpm@9.1.0"' in finding.details[0]
    assert '"pnpm@8.0.0"' in finding.details[0]


def test_field_comparison_ignores_key_order(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"tsconfig.json": {"compilerOptions": {"strict": True, "target": "ES2022"}}})
    make_files(target, {"tsconfig.json": {"compilerOptions": {"target": "ES2022", "strict": True}}})
    surface = _surface(
        strategy=Strategy.MERGE,
        paths=("tsconfig.json",),
        fields=(FieldRef(file="tsconfig.json", key="compilerOptions"),),
    )

    assert check_surface(surface, golden, target).status is FindingStatus.COMPLIANT


def test_unparseable_field_file_becomes_detail(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"package.json": {"engines": {"node": ">=20"}}})
    make_files(target, {"package.json": "{ broken"})
    surface = _surface(
        strategy=Strategy.MERGE,
        paths=("package.json",),
        fields=(FieldRef(file="package.json", key="engines"),),
    )

    finding = check_surface(surface, golden, target)

    assert finding.status is FindingStatus.COMPLIANT
    assert "Could not parse package.json for field comparison" in finding.details


def test_active_exception_short_circuits(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"eslint.config.js": ESLINT})
    make_files(
        target,
        {"eslint.config.js": "// fleet-policy-exception: FLEET-SURF-001 — legacy rules\nexport default []\n"},
    )

    finding = check_surface(_surface(), golden, target, exception_expiry_days=30)

    assert finding.status is FindingStatus.EXCEPTION
    assert finding.details == ("Exception found: legacy rules",)
    assert "expires after 30 days" in finding.remediation[0]
    assert not finding.is_gating


def test_expired_exception_does_not_short_circuit(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"eslint.config.js": ESLINT})
    make_files(
        target,
        {"eslint.config.js": "// fleet-policy-exception: FLEET-SURF-001 — legacy rules\nexport default []\n"},
    )

    finding = check_surface(_surface(), golden, target, is_active=lambda _exc: False)

    assert finding.status is FindingStatus.DRIFTED


def test_exception_for_other_surface_is_ignored(golden: Path, target: Path, make_files) -> None:
    make_files(golden, {"eslint.config.js": ESLINT})
    make_files(target, {"eslint.config.js": "// fleet-policy-exception: FLEET-SURF-009 — other\n"})

    assert check_surface(_surface(), golden, target).status is FindingStatus.DRIFTED


@pytest.mark.parametrize(
    "left, right, expected",
    [
        ({"a": 1, "b": [1, 2]}, {"b": [1, 2], "a": 1}, True),
        ([1, 2], [2, 1], False),
        (True, 1, False),
        (1, 1.0, True),
        (None, None, True),
        ({"a": None}, {}, False),
        ("1", 1, False),
    ],
)
def test_json_equal(left: object, right: object, expected: bool) -> None:
    assert json_equal(left, right) is expected
