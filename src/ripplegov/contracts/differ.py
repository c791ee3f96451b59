"""Shape-level breaking-change detection between two OpenAPI documents.

The comparison is one-directional and field-shape only: it does not notice
type narrowing (``string`` becoming an enum) or required fields added inside
nested objects.
"""

from __future__ import annotations

from typing import Any

from ripplegov.contracts.types import (
    HTTP_METHODS,
    BreakingChangeReport,
    ChangeSeverity,
    ChangeType,
    ContractChange,
)

Operation = dict[str, Any]
Endpoints = dict[str, dict[str, Operation]]


def extract_endpoints(document: dict[str, Any] | None) -> Endpoints:
    """Map each path to its HTTP operations, in document order."""
    endpoints: Endpoints = {}
    if not isinstance(document, dict):
        return endpoints
    paths = document.get("paths")
    if not isinstance(paths, dict):
        return endpoints

    for path, item in paths.items():
        methods: dict[str, Operation] = {}
        if isinstance(item, dict):
            for method, operation in item.items():
                if method in HTTP_METHODS:
                    methods[method] = operation if isinstance(operation, dict) else {}
        endpoints[path] = methods
    return endpoints


def _request_schema(operation: Operation) -> dict[str, Any] | None:
    body = operation.get("requestBody")
    if not isinstance(body, dict):
        return None
    content = body.get("content")
    if not isinstance(content, dict):
        return None
    media = content.get("application/json")
    if not isinstance(media, dict):
        return None
    schema = media.get("schema")
    return schema if isinstance(schema, dict) else None


def _required_fields(schema: dict[str, Any] | None) -> list[str]:
    if not schema or not isinstance(schema.get("required"), list):
        return []
    ordered: list[str] = []
    for name in schema["required"]:
        if isinstance(name, str) and name not in ordered:
            ordered.append(name)
    return ordered


def _required_params(operation: Operation) -> list[tuple[str, str]]:
    params = operation.get("parameters")
    if not isinstance(params, list):
        return []
    required: list[tuple[str, str]] = []
    for param in params:
        if not isinstance(param, dict) or not param.get("required"):
            continue
        key = (str(param.get("in", "")), str(param.get("name", "")))
        if key not in required:
            required.append(key)
    return required


def _response_codes(operation: Operation) -> list[str]:
    responses = operation.get("responses")
    if not isinstance(responses, dict):
        return []
    return [str(code) for code in responses]


def _operation_id(operation: Operation) -> str | None:
    value = operation.get("operationId")
    return str(value) if value else None


def detect_changes(baseline: dict[str, Any] | None, current: dict[str, Any] | None) -> list[ContractChange]:
    """Enumerate structural changes from ``baseline`` to ``current``.

    Baseline paths are walked first in document order, then additions in
    current's order, so identical inputs always yield identical output.
    """
    changes: list[ContractChange] = []
    base_endpoints = extract_endpoints(baseline)
    curr_endpoints = extract_endpoints(current)

    for path, base_methods in base_endpoints.items():
        curr_methods = curr_endpoints.get(path)
        if curr_methods is None:
            for method, operation in base_methods.items():
                changes.append(
                    ContractChange.of(
                        ChangeType.PATH_REMOVED,
                        path=path,
                        method=method,
                        operation_id=_operation_id(operation),
                        detail=f"Endpoint removed: {method.upper()} {path}",
                    )
                )
            continue

        for method, base_op in base_methods.items():
            curr_op = curr_methods.get(method)
            if curr_op is None:
                changes.append(
                    ContractChange.of(
                        ChangeType.METHOD_REMOVED,
                        path=path,
                        method=method,
                        operation_id=_operation_id(base_op),
                        detail=f"Method removed: {method.upper()} {path}",
                    )
                )
                continue
            changes.extend(_compare_operation(path, method, base_op, curr_op))

    for path, curr_methods in curr_endpoints.items():
        base_methods = base_endpoints.get(path)
        if base_methods is None:
            for method, operation in curr_methods.items():
                changes.append(
                    ContractChange.of(
                        ChangeType.PATH_ADDED,
                        path=path,
                        method=method,
                        operation_id=_operation_id(operation),
                        detail=f"New endpoint: {method.upper()} {path}",
                    )
                )
            continue

        for method, operation in curr_methods.items():
            if method not in base_methods:
                changes.append(
                    ContractChange.of(
                        ChangeType.METHOD_ADDED,
                        path=path,
                        method=method,
                        operation_id=_operation_id(operation),
                        detail=f"New method: {method.upper()} {path}",
                    )
                )

    return changes


def _compare_operation(path: str, method: str, base_op: Operation, curr_op: Operation) -> list[ContractChange]:
    changes: list[ContractChange] = []
    base_id = _operation_id(base_op)
    curr_id = _operation_id(curr_op)

    if base_id and curr_id and base_id != curr_id:
        changes.append(
            ContractChange.of(
                ChangeType.OPERATION_ID_CHANGED,
                path=path,
                method=method,
                operation_id=base_id,
                detail=f"operationId changed: {base_id} → {curr_id}",
            )
        )

    curr_schema = _request_schema(curr_op)
    if curr_schema is not None:
        base_required = set(_required_fields(_request_schema(base_op)))
        for field_name in _required_fields(curr_schema):
            if field_name not in base_required:
                changes.append(
                    ContractChange.of(
                        ChangeType.REQUIRED_FIELD_ADDED,
                        path=path,
                        method=method,
                        operation_id=curr_id,
                        detail=f'New required request field: "{field_name}"',
                    )
                )

    base_params = set(_required_params(base_op))
    for location, name in _required_params(curr_op):
        if (location, name) not in base_params:
            changes.append(
                ContractChange.of(
                    ChangeType.REQUIRED_PARAM_ADDED,
                    path=path,
                    method=method,
                    operation_id=curr_id,
                    detail=f'New required {location} parameter: "{name}"',
                )
            )

    curr_codes = set(_response_codes(curr_op))
    for code in _response_codes(base_op):
        if code not in curr_codes:
            changes.append(
                ContractChange.of(
                    ChangeType.RESPONSE_CODE_REMOVED,
                    path=path,
                    method=method,
                    operation_id=base_id,
                    detail=f"Response status code removed: {code}",
                )
            )

    return changes


def _info_version(document: dict[str, Any]) -> str:
    info = document.get("info")
    if isinstance(info, dict) and info.get("version") is not None:
        return str(info["version"])
    return "unknown"


def diff_contracts(
    baseline: dict[str, Any] | None,
    current: dict[str, Any],
    *,
    base_ref: str,
    timestamp: str,
) -> BreakingChangeReport:
    """Compare contracts and decide the gate; a missing baseline passes."""
    if baseline is None:
        return BreakingChangeReport(
            timestamp=timestamp,
            status="pass",
            base_ref=base_ref,
            baseline="not-found",
            changes=(),
        )

    changes = tuple(detect_changes(baseline, current))
    has_breaking = any(change.severity is ChangeSeverity.BREAKING for change in changes)
    return BreakingChangeReport(
        timestamp=timestamp,
        status="fail" if has_breaking else "pass",
        base_ref=base_ref,
        baseline="found",
        changes=changes,
        current_version=_info_version(current),
        baseline_version=_info_version(baseline),
    )


def inactive_report(*, base_ref: str, timestamp: str) -> BreakingChangeReport:
    """Report for a repository that has no current contract to check."""
    return BreakingChangeReport(
        timestamp=timestamp,
        status="pass",
        base_ref=base_ref,
        baseline="skipped",
        changes=(),
    )
