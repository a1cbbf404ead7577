"""
Manifest validator using JSON Schema.

Validates manifests in two phases:
1. Structural: every schema violation is collected and mapped to a located,
   user-actionable message.
2. Semantic: checks the schema cannot express (non-empty tools, unique tool
   names, strict version, known repository host). Runs only when phase 1
   passes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import jsonschema
from pydantic import ValidationError as PydanticValidationError

from contextmesh.errors import FieldViolation, ValidationError
from contextmesh.errors.validation import violation_from_schema_error
from contextmesh.manifest.loader import parse_manifest_text, read_manifest_text
from contextmesh.manifest.models import ConnectorManifest
from contextmesh.manifest.schema import CONNECTOR_SCHEMA
from contextmesh.telemetry import get_logger

KNOWN_REPO_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")

logger = get_logger("contextmesh.validator")


@dataclass
class ValidationResult:
    """Result of manifest validation.

    Attributes:
        valid: Whether the manifest passed both phases
        violations: Ordered violations (schema or semantic)
        warnings: Non-fatal findings
        manifest: The parsed manifest when valid
        semantic: Whether phase 2 ran (phase 1 passed)
    """

    valid: bool = True
    violations: list[FieldViolation] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    manifest: ConnectorManifest | None = None
    semantic: bool = False

    def __bool__(self) -> bool:
        return self.valid

    @property
    def errors(self) -> list[str]:
        """Violation messages in order."""
        return [v.message for v in self.violations]

    def add_violation(self, violation: FieldViolation) -> None:
        """Add a violation."""
        self.violations.append(violation)
        self.valid = False

    def add_warning(self, warning: str) -> None:
        """Add a warning."""
        self.warnings.append(warning)


class ManifestValidator:
    """Validates connector manifests against the connector JSON Schema.

    Example:
        >>> validator = ManifestValidator()
        >>> result = validator.check(data)
        >>> if not result:
        ...     print("Validation errors:", result.errors)
    """

    def __init__(self, schema: dict[str, Any] | None = None) -> None:
        """Initialize the validator.

        Args:
            schema: Custom schema (defaults to the connector schema)
        """
        self._schema = schema or CONNECTOR_SCHEMA
        self._compiled_validator: jsonschema.Draft7Validator | None = None

    def _compile_validator(self) -> jsonschema.Draft7Validator:
        if self._compiled_validator is None:
            jsonschema.Draft7Validator.check_schema(self._schema)
            self._compiled_validator = jsonschema.Draft7Validator(
                self._schema,
                format_checker=jsonschema.Draft7Validator.FORMAT_CHECKER,
            )
        return self._compiled_validator

    def schema_violations(self, data: Any) -> list[FieldViolation]:
        """Run phase 1 and return every structural violation."""
        validator = self._compile_validator()
        return [violation_from_schema_error(e) for e in validator.iter_errors(data)]

    def check(self, data: Any) -> ValidationResult:
        """Validate manifest data without raising.

        Args:
            data: Parsed manifest

        Returns:
            ValidationResult with violations, warnings and the parsed manifest
        """
        result = ValidationResult()

        for violation in self.schema_violations(data):
            result.add_violation(violation)
        if not result.valid:
            return result

        try:
            manifest = ConnectorManifest.model_validate(data)
        except PydanticValidationError as e:
            for error in e.errors():
                result.add_violation(
                    FieldViolation(
                        path="/".join(str(p) for p in error["loc"]) or "root",
                        message=error["msg"],
                        keyword=error["type"],
                    )
                )
            return result

        result.semantic = True
        check_semantics(manifest, result)
        if result.valid:
            result.manifest = manifest
        return result

    def validate_or_raise(
        self, data: Any, raw_content: str | None = None
    ) -> ConnectorManifest:
        """Validate manifest data and raise on the first failing phase.

        Args:
            data: Parsed manifest
            raw_content: Raw manifest text for line recovery

        Returns:
            The validated manifest

        Raises:
            ValidationError: If either phase fails
        """
        result = self.check(data)
        for warning in result.warnings:
            logger.warning(warning)

        if result.manifest is not None:
            return result.manifest

        if not result.semantic:
            raise ValidationError.from_violations(result.violations, raw_content)

        primary = result.violations[0]
        error = ValidationError.semantic(
            primary.message,
            field=primary.path if primary.path != "root" else None,
            suggestion=primary.suggestion,
            raw_content=raw_content,
        )
        error.violations.extend(result.violations[1:])
        raise error

    def is_valid(self, data: Any) -> bool:
        """Check if manifest data is valid."""
        return self.check(data).valid


def check_semantics(manifest: ConnectorManifest, result: ValidationResult) -> None:
    """Run phase 2 checks, recording violations and warnings on ``result``."""
    if not manifest.tools:
        result.add_violation(
            FieldViolation(
                path="tools",
                message="Connector must define at least one tool",
                keyword="semantic",
                suggestion='Add a "tools" array with at least one tool definition',
            )
        )

    duplicates = find_duplicate_names(manifest.tool_names)
    if duplicates:
        result.add_violation(
            FieldViolation(
                path="tools",
                message=f"Duplicate tool names found: {', '.join(duplicates)}",
                keyword="semantic",
                params={"duplicates": duplicates},
                suggestion="Give every tool a unique name",
            )
        )

    version = manifest.metadata.version
    if not is_strict_version(version):
        result.add_violation(
            FieldViolation(
                path="_contextmesh/version",
                message=f"Invalid version format: {version}",
                keyword="semantic",
                suggestion='Version must be a semantic version MAJOR.MINOR.PATCH (e.g., "1.0.0")',
            )
        )

    repo = manifest.metadata.repo
    if not is_known_repo_host(repo):
        result.add_warning(
            f"Repository URL should point to a known git hosting service: {repo}"
        )


def find_duplicate_names(names: list[str]) -> list[str]:
    """Names that occur more than once, in order of first repetition."""
    seen: set[str] = set()
    duplicates: list[str] = []
    for name in names:
        if name in seen and name not in duplicates:
            duplicates.append(name)
        seen.add(name)
    return duplicates


def is_strict_version(version: str) -> bool:
    """Check for exactly three dot-separated, all-numeric parts."""
    parts = version.split(".")
    return len(parts) == 3 and all(p.isascii() and p.isdigit() for p in parts)


def is_known_repo_host(repo: str) -> bool:
    """Check the repository URL host against known hosting providers."""
    host = (urlparse(repo).hostname or "").lower()
    return any(host == known or host.endswith(f".{known}") for known in KNOWN_REPO_HOSTS)


_default_validator: ManifestValidator | None = None


def get_validator() -> ManifestValidator:
    """Get the shared validator (schema compiled once per process)."""
    global _default_validator
    if _default_validator is None:
        _default_validator = ManifestValidator()
    return _default_validator


def validate_manifest(manifest_path: str | Path) -> ConnectorManifest:
    """Load and validate a manifest file.

    Args:
        manifest_path: Path to `connector.mcp.json`

    Returns:
        The validated manifest (never a partial result)

    Raises:
        FileSystemError: If the file is missing, unreadable or not JSON
        ValidationError: If structural or semantic validation fails
    """
    raw_content = read_manifest_text(manifest_path)
    data = parse_manifest_text(raw_content, manifest_path)

    logger.debug("Validating connector manifest", path=str(manifest_path))
    manifest = get_validator().validate_or_raise(data, raw_content)
    logger.info(
        "Manifest validation passed",
        connector_id=manifest.id,
        version=manifest.version,
    )
    return manifest

