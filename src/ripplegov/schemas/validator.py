"""Report validation against the bundled JSON Schemas."""

from typing import Any

from jsonschema.exceptions import ValidationError
from jsonschema.validators import Draft202012Validator

from ripplegov.utils.schema_registry import get_registry


def _describe(error: ValidationError) -> str:
    location = "/".join(str(part) for part in error.absolute_path)
    return f"{location or '<root>'}: {error.message}"


def report_errors(data: dict[str, Any], schema_name: str) -> list[str]:
    """Return one message per schema violation, ordered by JSON location."""
    validator = Draft202012Validator(get_registry().get_json(schema_name))
    violations = sorted(
        validator.iter_errors(data),
        key=lambda error: [str(part) for part in error.absolute_path],
    )
    return [_describe(error) for error in violations]


def validate_data(
    data: dict[str, Any],
    schema_name: str,
    strict: bool = True
) -> tuple[bool, list[str]]:
    """Check a report payload against its schema.

    With ``strict`` set, any violation raises ``ValueError`` listing every
    message; otherwise the messages are returned for the caller to log.
    An unknown schema name raises ``KeyError`` either way.
    """
    messages = report_errors(data, schema_name)
    if messages and strict:
        listing = "\n".join(f"  - {message}" for message in messages)
        raise ValueError(f"Report does not match schema '{schema_name}':\n{listing}")
    return not messages, messages
