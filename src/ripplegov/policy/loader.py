"""Load and validate the fleet policy manifest and conformance rubric."""

from __future__ import annotations

import json
from importlib.resources import files
from pathlib import Path
from typing import Any

from ripplegov.policy.types import (
    DEFAULT_EXCEPTION_EXPIRY_DAYS,
    DEFAULT_MINIMUM_SCORE,
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

POLICY_REASON_INVALID = "RPL-FLEET-004"
RUBRIC_REASON_INVALID = "RPL-CONFORM-001"

PACKAGED_POLICY_NAME = "fleet-policy.json"
PACKAGED_RUBRIC_NAME = "conformance-rubric.json"

_KNOWN_CHECK_TYPES = {member.value: member for member in CheckType}


class PolicyError(ValueError):
    """Policy manifest or rubric could not be loaded."""

    reason_code: str

    def __init__(self, message: str, reason_code: str = POLICY_REASON_INVALID) -> None:
        super().__init__(message)
        self.reason_code = reason_code


def packaged_document(name: str) -> str:
    """Return the text of a default manifest bundled with the package."""
    return files("ripplegov_schemas").joinpath(name).read_text(encoding="utf-8")


def load_policy(path: Path | None = None) -> FleetPolicy:
    """Load the fleet policy manifest from ``path`` or the packaged default."""
    raw = _read_document(path, PACKAGED_POLICY_NAME, POLICY_REASON_INVALID, "fleet policy")
    return parse_policy(raw)


def load_rubric(path: Path | None = None) -> Rubric:
    """Load the conformance rubric from ``path`` or the packaged default."""
    raw = _read_document(path, PACKAGED_RUBRIC_NAME, RUBRIC_REASON_INVALID, "conformance rubric")
    return parse_rubric(raw)


def _read_document(path: Path | None, packaged_name: str, reason_code: str, label: str) -> dict[str, Any]:
    if path is None:
        text = packaged_document(packaged_name)
        source = f"packaged {packaged_name}"
    else:
        if not path.exists():
            raise PolicyError(f"{label} not found at {path}", reason_code)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PolicyError(f"{label} unreadable at {path}: {exc}", reason_code) from exc
        source = str(path)

    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PolicyError(f"{label} is not valid JSON ({source}): {exc}", reason_code) from exc
    if not isinstance(raw, dict):
        raise PolicyError(f"{label} must be a JSON object ({source})", reason_code)
    return raw


def parse_policy(raw: dict[str, Any]) -> FleetPolicy:
    """Normalize a decoded policy manifest."""
    surfaces_raw = raw.get("governedSurfaces")
    if not isinstance(surfaces_raw, list):
        raise PolicyError("fleet policy missing required `governedSurfaces` list")

    surfaces: list[GovernedSurface] = []
    seen_ids: set[str] = set()
    for index, entry in enumerate(surfaces_raw):
        if not isinstance(entry, dict):
            raise PolicyError(f"governedSurfaces[{index}] must be an object")
        surface = _parse_surface(entry, index)
        if surface.id in seen_ids:
            raise PolicyError(f"duplicate governed surface id `{surface.id}`")
        seen_ids.add(surface.id)
        surfaces.append(surface)

    targets_raw = raw.get("complianceTargets") or {}
    if not isinstance(targets_raw, dict):
        raise PolicyError("complianceTargets must be an object")
    try:
        targets = ComplianceTargets(
            minimum_score=int(targets_raw.get("minimumScore", DEFAULT_MINIMUM_SCORE)),
            exception_expiry_days=int(targets_raw.get("exceptionExpiryDays", DEFAULT_EXCEPTION_EXPIRY_DAYS)),
        )
    except (TypeError, ValueError) as exc:
        raise PolicyError(f"complianceTargets values must be integers: {exc}") from exc

    return FleetPolicy(governed_surfaces=tuple(surfaces), compliance_targets=targets)


def _parse_surface(entry: dict[str, Any], index: int) -> GovernedSurface:
    where = f"governedSurfaces[{index}]"
    surface_id = str(entry.get("id", "")).strip()
    if not surface_id:
        raise PolicyError(f"{where}.id is required")

    try:
        severity = Severity(str(entry.get("severity", "")).strip())
    except ValueError as exc:
        raise PolicyError(
            f"{where}.severity must be one of {[s.value for s in Severity]}, got `{entry.get('severity')}`"
        ) from exc
    try:
        strategy = Strategy(str(entry.get("strategy", "")).strip())
    except ValueError as exc:
        raise PolicyError(
            f"{where}.strategy must be one of {[s.value for s in Strategy]}, got `{entry.get('strategy')}`"
        ) from exc

    paths = _string_list(entry.get("paths"), f"{where}.paths")

    fields: list[FieldRef] = []
    fields_raw = entry.get("fields") or []
    if not isinstance(fields_raw, list):
        raise PolicyError(f"{where}.fields must be a list")
    for field_index, field_raw in enumerate(fields_raw):
        if not isinstance(field_raw, dict) or not field_raw.get("file") or not field_raw.get("key"):
            raise PolicyError(f"{where}.fields[{field_index}] needs `file` and `key`")
        fields.append(FieldRef(file=str(field_raw["file"]), key=str(field_raw["key"])))

    taxonomy_code = entry.get("taxonomyCode")
    return GovernedSurface(
        id=surface_id,
        name=str(entry.get("name", surface_id)),
        severity=severity,
        strategy=strategy,
        paths=tuple(paths),
        fields=tuple(fields),
        checksum_validation=bool(entry.get("checksumValidation", False)),
        taxonomy_code=str(taxonomy_code) if taxonomy_code else None,
    )


def parse_rubric(raw: dict[str, Any]) -> Rubric:
    """Normalize a decoded conformance rubric."""
    if "passingScore" not in raw:
        raise PolicyError("conformance rubric missing `passingScore`", RUBRIC_REASON_INVALID)
    try:
        passing_score = int(raw["passingScore"])
    except (TypeError, ValueError) as exc:
        raise PolicyError("passingScore must be an integer", RUBRIC_REASON_INVALID) from exc

    categories_raw = raw.get("categories")
    if not isinstance(categories_raw, list):
        raise PolicyError("conformance rubric missing `categories` list", RUBRIC_REASON_INVALID)

    categories: list[Category] = []
    for index, category_raw in enumerate(categories_raw):
        if not isinstance(category_raw, dict):
            raise PolicyError(f"categories[{index}] must be an object", RUBRIC_REASON_INVALID)
        checks_raw = category_raw.get("checks") or []
        if not isinstance(checks_raw, list):
            raise PolicyError(f"categories[{index}].checks must be a list", RUBRIC_REASON_INVALID)
        checks = tuple(
            _parse_check(check_raw, f"categories[{index}].checks[{check_index}]")
            for check_index, check_raw in enumerate(checks_raw)
        )
        category_id = str(category_raw.get("id", f"category-{index}"))
        categories.append(
            Category(id=category_id, name=str(category_raw.get("name", category_id)), checks=checks)
        )

    return Rubric(passing_score=passing_score, categories=tuple(categories))


def _parse_check(raw: Any, where: str) -> RubricCheck:
    if not isinstance(raw, dict):
        raise PolicyError(f"{where} must be an object", RUBRIC_REASON_INVALID)

    try:
        points = int(raw.get("points", 0))
    except (TypeError, ValueError) as exc:
        raise PolicyError(f"{where}.points must be an integer", RUBRIC_REASON_INVALID) from exc
    if points <= 0:
        raise PolicyError(f"{where}.points must be a positive integer", RUBRIC_REASON_INVALID)

    type_name = str(raw.get("type", "")).strip()
    remediation = raw.get("remediation")
    paths_raw = raw.get("paths") or []
    if not isinstance(paths_raw, list):
        raise PolicyError(f"{where}.paths must be a list", RUBRIC_REASON_INVALID)

    return RubricCheck(
        id=str(raw.get("id", where)),
        type=_KNOWN_CHECK_TYPES.get(type_name),
        type_name=type_name,
        points=points,
        description=str(raw.get("description", "")),
        remediation=str(remediation) if remediation else None,
        path=_optional_string(raw, "path", where),
        paths=tuple(str(item) for item in paths_raw),
        json_field=_optional_string(raw, "field", where),
        script=_optional_string(raw, "script", where),
        gitignore_path=str(raw.get("gitignorePath", ".gitignore")),
        pattern=_optional_string(raw, "pattern", where),
    )


def _optional_string(raw: dict[str, Any], key: str, where: str) -> str | None:
    value = raw.get(key)
    if value is not None and not isinstance(value, str):
        raise PolicyError(f"{where}.{key} must be a string", RUBRIC_REASON_INVALID)
    return value


def _string_list(value: Any, field_name: str) -> list[str]:
    """Normalize a list of strings while preserving declaration order."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise PolicyError(f"{field_name} must be a list of strings")

    normalized: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise PolicyError(f"{field_name} must be a list of strings")
        cleaned = item.strip()
        if cleaned and cleaned not in normalized:
            normalized.append(cleaned)
    return normalized
