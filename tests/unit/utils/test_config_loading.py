"""Runtime config layering and git helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from ripplegov.config import DEFAULT_OPENAPI_RELATIVE_PATH, Config, load_config
from ripplegov.utils.git import head_sha, show_file
from ripplegov.utils.rounding import round_half_up


def test_defaults_without_config_file(golden: Path) -> None:
    config = load_config(golden)

    assert config.golden_root == golden
    assert config.policy_path is None
    assert config.rubric_path is None
    assert config.openapi_path == DEFAULT_OPENAPI_RELATIVE_PATH
    assert config.workers == 1
    assert config.is_self_check


def test_golden_path_manifests_are_picked_up(golden: Path, make_files) -> None:
    make_files(golden, {"docs/fleet-policy.json": {}, "docs/conformance-rubric.json": {}})

    config = load_config(golden)

    assert config.policy_path == golden / "docs/fleet-policy.json"
    assert config.rubric_path == golden / "docs/conformance-rubric.json"


def test_yaml_config_overrides_defaults(golden: Path, make_files) -> None:
    make_files(
        golden,
        {
            ".ripplegov/config.yaml": (
                "policy: governance/policy.json\n"
                "openapi: api/openapi.json\n"
                "base_ref: origin/main\n"
                "timestamp_mode: deterministic\n"
                "workers: 4\n"
            )
        },
    )

    config = load_config(golden)

    assert config.policy_path == golden / "governance/policy.json"
    assert config.openapi_path == Path("api/openapi.json")
    assert config.base_ref == "origin/main"
    assert config.timestamp_mode == "deterministic"
    assert config.workers == 4


def test_empty_config_file_means_defaults(golden: Path, make_files) -> None:
    make_files(golden, {".ripplegov/config.yaml": ""})
    assert load_config(golden) == Config(golden_root=golden)


@pytest.mark.parametrize(
    "text, message",
    [
        ("workers: [1\n", "Malformed YAML"),
        ("- just\n- a list\n", "expected a mapping"),
        ("workers: 0\n", "positive integer"),
        ("timestamp_mode: sometime\n", "timestamp_mode"),
        ("colour: blue\n", "unknown keys"),
    ],
)
def test_invalid_config_raises(golden: Path, make_files, text: str, message: str) -> None:
    make_files(golden, {".ripplegov/config.yaml": text})
    with pytest.raises(RuntimeError, match=message):
        load_config(golden)


def test_cli_overrides_skip_none(golden: Path) -> None:
    config = Config(golden_root=golden, workers=3)
    updated = config.with_overrides(workers=None, timestamp_mode="deterministic")

    assert updated.workers == 3
    assert updated.timestamp_mode == "deterministic"


def test_target_distinct_from_golden_root(golden: Path, target: Path) -> None:
    config = Config(golden_root=golden, target_root=target)
    assert not config.is_self_check
    assert config.effective_target == target


def test_git_helpers_outside_a_repository(tmp_path: Path) -> None:
    assert head_sha(tmp_path) == "unknown"
    assert show_file(tmp_path, "main", "docs/api/openapi.json") is None


@pytest.mark.parametrize("value, expected", [(12.5, 13), (87.5, 88), (66.66, 67), (0.4, 0)])
def test_round_half_up(value: float, expected: int) -> None:
    assert round_half_up(value) == expected
