"""
Manifest loader and scaffold.

Reads `connector.mcp.json` from disk and translates I/O and parse failures
into FileSystemError. Loading is a pure read; only `ensure_manifest` writes.
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from contextmesh.errors import ErrorDetails, FileOperation, FileSystemError, ValidationError
from contextmesh.manifest.models import SCHEMA_ID, ConnectorManifest
from contextmesh.telemetry import get_logger

MANIFEST_FILENAME = "connector.mcp.json"

README_FILENAMES = ("README.md", "readme.md", "Readme.md")

_SLUG_INVALID_RUN = re.compile(r"[^a-z0-9-]+")

logger = get_logger("contextmesh.manifest")


def read_manifest_text(path: str | Path) -> str:
    """Read the raw manifest text.

    Args:
        path: Path to the manifest file

    Returns:
        File content as text

    Raises:
        FileSystemError: If the file is missing or unreadable
    """
    path = Path(path)
    if not path.exists():
        raise FileSystemError.file_not_found(str(path))
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise FileSystemError.invalid_content(str(path), str(e), cause=e) from e
    except OSError as e:
        raise FileSystemError.from_os_error(e, str(path), FileOperation.READ) from e


def parse_manifest_text(content: str, path: str | Path) -> dict[str, Any]:
    """Parse manifest text into a JSON object.

    Raises:
        FileSystemError: If the text is not a JSON object
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise FileSystemError.invalid_content(str(path), str(e), cause=e) from e
    if not isinstance(data, dict):
        raise FileSystemError.invalid_content(
            str(path), f"expected a JSON object, got {type(data).__name__}"
        )
    return data


def load_raw_manifest(path: str | Path) -> dict[str, Any]:
    """Load the manifest as a plain dictionary (no schema checks)."""
    return parse_manifest_text(read_manifest_text(path), path)


def load_manifest(path: str | Path) -> ConnectorManifest:
    """Load a manifest into the model without schema validation.

    Use `contextmesh.manifest.validate_manifest` to get a manifest that has
    passed structural and semantic checks.

    Args:
        path: Path to the manifest file

    Returns:
        ConnectorManifest snapshot

    Raises:
        FileSystemError: If the file is missing, unreadable or not JSON
        ValidationError: If the content does not fit the manifest model
    """
    data = load_raw_manifest(path)
    try:
        return ConnectorManifest.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = "/".join(str(part) for part in first["loc"]) or "root"
        raise ValidationError(
            f"Manifest validation failed: {first['msg']}",
            ErrorDetails(field=field),
            cause=e,
        ) from e


def derive_connector_id(name: str) -> str:
    """Derive a connector slug from a directory name.

    Lowercases the name and replaces every run of characters outside
    ``[a-z0-9-]`` with a single hyphen.

    Example:
        >>> derive_connector_id("My Cool_Connector")
        'my-cool-connector'
    """
    return _SLUG_INVALID_RUN.sub("-", name.lower())


def _title_case(connector_id: str) -> str:
    return " ".join(word[:1].upper() + word[1:] for word in connector_id.split("-"))


def default_manifest(connector_id: str) -> dict[str, Any]:
    """Build the scaffold manifest for a new connector."""
    return {
        "schema": SCHEMA_ID,
        "id": connector_id,
        "name": _title_case(connector_id),
        "description": "A ContextMesh connector",
        "tools": [
            {
                "name": "example_tool",
                "description": "An example tool - please update this",
                "input_schema": {
                    "type": "object",
                    "properties": {"input": {"type": "string"}},
                    "required": ["input"],
                },
                "output_schema": {
                    "type": "object",
                    "properties": {"result": {"type": "string"}},
                },
            }
        ],
        "_contextmesh": {
            "version": "0.1.0",
            "tags": ["example"],
            "language": "typescript",
            "repo": f"https://github.com/contextmesh/{connector_id}",
            "author": {"name": "Your Name", "email": "your.email@example.com"},
            "license": "MIT",
        },
    }


def ensure_manifest(directory: str | Path) -> Path:
    """Return the manifest path, writing a default manifest if none exists.

    Args:
        directory: Connector directory

    Returns:
        Path to `connector.mcp.json`

    Raises:
        FileSystemError: If the directory is missing or not writable
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise FileSystemError.directory_not_found(str(directory))

    manifest_path = directory / MANIFEST_FILENAME
    if manifest_path.exists():
        return manifest_path

    connector_id = derive_connector_id(directory.resolve().name)
    logger.warning("No manifest found, creating one", path=str(manifest_path))
    try:
        manifest_path.write_text(
            json.dumps(default_manifest(connector_id), indent=2) + "\n",
            encoding="utf-8",
        )
    except OSError as e:
        raise FileSystemError.from_os_error(e, str(manifest_path), FileOperation.CREATE) from e

    logger.info("Created manifest", path=str(manifest_path), connector_id=connector_id)
    return manifest_path


def load_readme(directory: str | Path) -> str | None:
    """Read the connector README if one exists.

    Returns:
        README text, or None if no README file is present
    """
    directory = Path(directory)
    for filename in README_FILENAMES:
        readme_path = directory / filename
        if readme_path.is_file():
            try:
                return readme_path.read_text(encoding="utf-8")
            except OSError as e:
                raise FileSystemError.from_os_error(
                    e, str(readme_path), FileOperation.READ
                ) from e
    return None
