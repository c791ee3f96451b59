"""Pytest configuration and fixtures for ripplegov tests."""
import json
from pathlib import Path

import pytest


def write_files(root: Path, files: dict[str, str | dict | list]) -> Path:
    """Create files under root; dict/list values are written as JSON."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, (dict, list)):
            path.write_text(json.dumps(content, indent=2), encoding="utf-8")
        else:
            path.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def golden(tmp_path: Path) -> Path:
    root = tmp_path / "golden"
    root.mkdir()
    return root


@pytest.fixture
def target(tmp_path: Path) -> Path:
    root = tmp_path / "target"
    root.mkdir()
    return root


@pytest.fixture
def eslint_policy() -> dict:
    """Single-surface manifest syncing eslint.config.js by checksum."""
    return {
        "governedSurfaces": [
            {
                "id": "FLEET-SURF-001",
                "name": "ESLint configuration",
                "severity": "standards-required",
                "strategy": "sync",
                "paths": ["eslint.config.js"],
                "checksumValidation": True,
                "taxonomyCode": "RPL-FLEET-001",
            }
        ],
        "complianceTargets": {"minimumScore": 80, "exceptionExpiryDays": 90},
    }


@pytest.fixture
def make_files():
    return write_files
