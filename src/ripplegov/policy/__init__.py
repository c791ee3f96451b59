"""Fleet policy manifest and conformance rubric model."""

from ripplegov.policy.loader import PolicyError, load_policy, load_rubric, parse_policy, parse_rubric
from ripplegov.policy.types import (
    Category,
    CheckType,
    ComplianceTargets,
    FieldRef,
    FleetPolicy,
    GovernedSurface,
    Rubric,
    RubricCheck,
    Severity,
    Strategy,
)

__all__ = [
    "Category",
    "CheckType",
    "ComplianceTargets",
    "FieldRef",
    "FleetPolicy",
    "GovernedSurface",
    "PolicyError",
    "Rubric",
    "RubricCheck",
    "Severity",
    "Strategy",
    "load_policy",
    "load_rubric",
    "parse_policy",
    "parse_rubric",
]
