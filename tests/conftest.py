"""Root pytest fixtures for contextmesh tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from contextmesh.telemetry import ContextMeshLogger, clear_log_context


def _demo_manifest() -> dict[str, Any]:
    return {
        "schema": "https://mcp.dev/schema/1.0",
        "id": "demo",
        "tools": [{"name": "t", "description": "d"}],
        "_contextmesh": {
            "version": "0.1.0",
            "tags": ["x"],
            "language": "typescript",
            "repo": "https://github.com/a/b",
        },
    }


def _write_manifest(directory: Path, data: Any) -> Path:
    path = directory / "connector.mcp.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def manifest_data() -> dict[str, Any]:
    """Minimal manifest that passes every check (fresh copy per test)."""
    return _demo_manifest()


@pytest.fixture
def write_manifest():
    """Write data as connector.mcp.json in a directory."""
    return _write_manifest


@pytest.fixture
def registry_url() -> str:
    """Base URL of the mocked registry."""
    return "https://registry.test"


@pytest.fixture
def connector_dir(tmp_path: Path, manifest_data: dict[str, Any]) -> Path:
    """Connector directory with a manifest, README and a source file."""
    directory = tmp_path / "demo"
    directory.mkdir()
    _write_manifest(directory, manifest_data)
    (directory / "README.md").write_text("# Demo\n", encoding="utf-8")
    (directory / "src").mkdir()
    (directory / "src" / "index.ts").write_text("export {};\n", encoding="utf-8")
    return directory


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore default logging after each test."""
    yield
    ContextMeshLogger.configure()
    clear_log_context()
