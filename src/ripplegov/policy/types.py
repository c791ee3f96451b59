"""Policy manifest and conformance rubric domain types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

DEFAULT_POLICY_RELATIVE_PATH = Path("docs/fleet-policy.json")
DEFAULT_RUBRIC_RELATIVE_PATH = Path("docs/conformance-rubric.json")

DEFAULT_MINIMUM_SCORE = 80
DEFAULT_EXCEPTION_EXPIRY_DAYS = 90
DEFAULT_PASSING_SCORE = 70


class Severity(str, Enum):
    """How much a drifted surface matters to the fleet gate."""

    SECURITY_CRITICAL = "security-critical"
    STANDARDS_REQUIRED = "standards-required"
    ADVISORY = "advisory"


class Strategy(str, Enum):
    """How a downstream repository is expected to track a surface."""

    SYNC = "sync"
    MERGE = "merge"
    ADVISORY = "advisory"


class CheckType(str, Enum):
    """Supported rubric check predicates."""

    FILE_EXISTS = "file-exists"
    FILE_EXISTS_ANY = "file-exists-any"
    JSON_FIELD = "json-field"
    SCRIPT_EXISTS = "script-exists"
    FILE_NOT_TRACKED = "file-not-tracked"


@dataclass(frozen=True)
class FieldRef:
    """A JSON key inside a governed file."""

    file: str
    key: str


@dataclass(frozen=True)
class GovernedSurface:
    """One unit of policy enforcement."""

    id: str
    name: str
    severity: Severity
    strategy: Strategy
    paths: tuple[str, ...] = ()
    fields: tuple[FieldRef, ...] = ()
    checksum_validation: bool = False
    taxonomy_code: str | None = None


@dataclass(frozen=True)
class ComplianceTargets:
    """Fleet-wide compliance thresholds."""

    minimum_score: int = DEFAULT_MINIMUM_SCORE
    exception_expiry_days: int = DEFAULT_EXCEPTION_EXPIRY_DAYS


@dataclass(frozen=True)
class FleetPolicy:
    """Normalized fleet policy manifest."""

    governed_surfaces: tuple[GovernedSurface, ...]
    compliance_targets: ComplianceTargets = field(default_factory=ComplianceTargets)


@dataclass(frozen=True)
class RubricCheck:
    """One weighted conformance assertion.

    ``type`` is ``None`` when the rubric names a check type this engine does
    not know; the raw string is kept in ``type_name`` for reporting.
    """

    id: str
    type: CheckType | None
    type_name: str
    points: int
    description: str
    remediation: str | None = None
    path: str | None = None
    paths: tuple[str, ...] = ()
    json_field: str | None = None
    script: str | None = None
    gitignore_path: str = ".gitignore"
    pattern: str | None = None


@dataclass(frozen=True)
class Category:
    """Named group of rubric checks."""

    id: str
    name: str
    checks: tuple[RubricCheck, ...]


@dataclass(frozen=True)
class Rubric:
    """Weighted conformance rubric."""

    passing_score: int
    categories: tuple[Category, ...]

    @property
    def max_score(self) -> int:
        return sum(check.points for category in self.categories for check in category.checks)
