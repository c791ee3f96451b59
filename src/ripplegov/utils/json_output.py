"""JSON report output with schema validation."""

from pathlib import Path
from typing import Any

from ripplegov.artifacts.report_json import write_json
from ripplegov.schemas.validator import validate_data


def write_json_strict(
    *,
    data: dict[str, Any],
    output_path: Path,
    schema_name: str,
) -> None:
    """Write JSON after strict schema validation.

    Args:
        data: Report payload to write
        output_path: Path to output file
        schema_name: Name of schema to validate against

    Raises:
        RuntimeError: If validation fails (nothing is written)
    """
    try:
        validate_data(data, schema_name, strict=True)
    except (KeyError, ValueError) as e:
        raise RuntimeError(
            f"Schema validation failed for {schema_name} at {output_path}: {e}"
        ) from e

    write_json(output_path, data)
