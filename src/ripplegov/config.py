"""Runtime configuration for governance runs.

Settings come from three layers, later ones winning:

1. Built-in defaults
2. ``.ripplegov/config.yaml`` under the golden-path root (optional)
3. Command-line flags

The resulting ``Config`` is passed explicitly to every command; nothing is
read from module-level state.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from ripplegov.policy.types import DEFAULT_POLICY_RELATIVE_PATH, DEFAULT_RUBRIC_RELATIVE_PATH

CONFIG_RELATIVE_PATH = Path(".ripplegov/config.yaml")
DEFAULT_OPENAPI_RELATIVE_PATH = Path("docs/api/openapi.json")
DEFAULT_BASE_REF = "main"
TIMESTAMP_MODES = ("deterministic", "wallclock")

_KNOWN_KEYS = {"policy", "rubric", "openapi", "base_ref", "timestamp_mode", "workers"}


@dataclass(frozen=True)
class Config:
    """Resolved settings for one invocation.

    ``target_root`` is None when the golden path checks itself.
    ``policy_path``/``rubric_path`` are None when the packaged defaults apply.
    """

    golden_root: Path
    target_root: Path | None = None
    policy_path: Path | None = None
    rubric_path: Path | None = None
    openapi_path: Path = DEFAULT_OPENAPI_RELATIVE_PATH
    base_ref: str = DEFAULT_BASE_REF
    timestamp_mode: str = "wallclock"
    workers: int = 1

    @property
    def effective_target(self) -> Path:
        return self.target_root if self.target_root is not None else self.golden_root

    @property
    def is_self_check(self) -> bool:
        return self.target_root is None or self.target_root.resolve() == self.golden_root.resolve()

    def with_overrides(self, **overrides: Any) -> Config:
        """Copy with every non-None override applied."""
        applied = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **applied)


def _resolve(root: Path, value: Any, key: str, path: Path) -> Path:
    if not isinstance(value, str) or not value.strip():
        raise RuntimeError(f"Invalid config structure in {path}: `{key}` must be a non-empty string")
    candidate = Path(value)
    return candidate if candidate.is_absolute() else root / candidate


def config_from_dict(golden_root: Path, data: dict[str, Any], source: Path) -> Config:
    """Build a Config from a decoded config mapping."""
    unknown = sorted(set(data) - _KNOWN_KEYS)
    if unknown:
        raise RuntimeError(f"Invalid config structure in {source}: unknown keys {unknown}")

    config = default_config(golden_root)
    updates: dict[str, Any] = {}
    if "policy" in data:
        updates["policy_path"] = _resolve(golden_root, data["policy"], "policy", source)
    if "rubric" in data:
        updates["rubric_path"] = _resolve(golden_root, data["rubric"], "rubric", source)
    if "openapi" in data:
        openapi = data["openapi"]
        if not isinstance(openapi, str) or not openapi.strip():
            raise RuntimeError(f"Invalid config structure in {source}: `openapi` must be a non-empty string")
        updates["openapi_path"] = Path(openapi)
    if "base_ref" in data:
        updates["base_ref"] = str(data["base_ref"])
    if "timestamp_mode" in data:
        mode = str(data["timestamp_mode"])
        if mode not in TIMESTAMP_MODES:
            raise RuntimeError(
                f"Invalid config structure in {source}: timestamp_mode must be one of {list(TIMESTAMP_MODES)}"
            )
        updates["timestamp_mode"] = mode
    if "workers" in data:
        workers = data["workers"]
        if isinstance(workers, bool) or not isinstance(workers, int) or workers < 1:
            raise RuntimeError(f"Invalid config structure in {source}: `workers` must be a positive integer")
        updates["workers"] = workers
    return replace(config, **updates)


def default_config(golden_root: Path) -> Config:
    """Defaults, picking up the golden path's own policy and rubric when present."""
    policy_path = golden_root / DEFAULT_POLICY_RELATIVE_PATH
    rubric_path = golden_root / DEFAULT_RUBRIC_RELATIVE_PATH
    return Config(
        golden_root=golden_root,
        policy_path=policy_path if policy_path.exists() else None,
        rubric_path=rubric_path if rubric_path.exists() else None,
    )


def load_config(golden_root: Path) -> Config:
    """Load ``.ripplegov/config.yaml`` under ``golden_root`` on top of the defaults.

    Raises:
        RuntimeError: If the config file is malformed or has an invalid structure
    """
    path = golden_root / CONFIG_RELATIVE_PATH
    if not path.exists():
        return default_config(golden_root)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise RuntimeError(f"Malformed YAML config at {path}: {e}") from e
    except OSError as e:
        raise RuntimeError(f"Unreadable config at {path}: {e}") from e

    if data is None:
        return default_config(golden_root)
    if not isinstance(data, dict):
        raise RuntimeError(f"Invalid config structure in {path}: expected a mapping at top level")
    return config_from_dict(golden_root, data, path)
