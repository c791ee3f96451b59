"""API contract change types."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

BREAKING_SCHEMA = "ripple-api-breaking/v1"

BREAKING_CHANGE_CODE = "RPL-API-002"
NON_BREAKING_CHANGE_CODE = "RPL-API-003"

HTTP_METHODS: tuple[str, ...] = ("get", "post", "put", "patch", "delete", "head", "options")


class ChangeSeverity(str, Enum):
    BREAKING = "breaking"
    NON_BREAKING = "non-breaking"


class ChangeType(str, Enum):
    """Structural differences the differ can report."""

    PATH_REMOVED = "path-removed"
    METHOD_REMOVED = "method-removed"
    OPERATION_ID_CHANGED = "operation-id-changed"
    REQUIRED_FIELD_ADDED = "required-field-added"
    REQUIRED_PARAM_ADDED = "required-param-added"
    RESPONSE_CODE_REMOVED = "response-code-removed"
    PATH_ADDED = "path-added"
    METHOD_ADDED = "method-added"

    @property
    def severity(self) -> ChangeSeverity:
        if self in ADDITIVE_TYPES:
            return ChangeSeverity.NON_BREAKING
        return ChangeSeverity.BREAKING


BREAKING_TYPES: frozenset[ChangeType] = frozenset(
    {
        ChangeType.PATH_REMOVED,
        ChangeType.METHOD_REMOVED,
        ChangeType.OPERATION_ID_CHANGED,
        ChangeType.REQUIRED_FIELD_ADDED,
        ChangeType.REQUIRED_PARAM_ADDED,
        ChangeType.RESPONSE_CODE_REMOVED,
    }
)
ADDITIVE_TYPES: frozenset[ChangeType] = frozenset({ChangeType.PATH_ADDED, ChangeType.METHOD_ADDED})


@dataclass(frozen=True)
class ContractChange:
    """One detected difference between two OpenAPI documents."""

    type: ChangeType
    severity: ChangeSeverity
    path: str
    method: str
    operation_id: str | None
    detail: str

    def __post_init__(self) -> None:
        if self.severity is not self.type.severity:
            raise ValueError(
                f"{self.type.value} changes are {self.type.severity.value}, not {self.severity.value}"
            )

    @classmethod
    def of(
        cls,
        change_type: ChangeType,
        *,
        path: str,
        method: str,
        operation_id: str | None,
        detail: str,
    ) -> ContractChange:
        return cls(
            type=change_type,
            severity=change_type.severity,
            path=path,
            method=method.upper(),
            operation_id=operation_id,
            detail=detail,
        )


@dataclass(frozen=True)
class BreakingChangeReport:
    """Verdict of comparing a current API contract against its baseline."""

    timestamp: str
    status: Literal["pass", "fail"]
    base_ref: str
    baseline: Literal["found", "not-found", "skipped"]
    changes: tuple[ContractChange, ...]
    current_version: str | None = None
    baseline_version: str | None = None

    @property
    def breaking(self) -> tuple[ContractChange, ...]:
        return tuple(change for change in self.changes if change.severity is ChangeSeverity.BREAKING)

    @property
    def non_breaking(self) -> tuple[ContractChange, ...]:
        return tuple(change for change in self.changes if change.severity is ChangeSeverity.NON_BREAKING)
