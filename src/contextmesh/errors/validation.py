"""
Validation errors for connector manifests.

Maps JSON Schema violations to located, user-actionable messages.
Line/column recovery is a best-effort text search for the quoted key and can
mis-locate a key that appears more than once in the document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from contextmesh.errors.base import ContextMeshError, ErrorDetails, ErrorKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    import jsonschema

_REQUIRED_RE = re.compile(r"^'(?P<name>[^']+)' is a required property")

_REQUIRED_SUGGESTIONS: dict[str, str] = {
    "schema": 'Add "schema": "https://mcp.dev/schema/1.0" at the root level',
    "id": 'Add "id": "your-connector-name" (lowercase, hyphens only)',
    "tools": 'Add a "tools" array with at least one tool definition',
    "_contextmesh": (
        'Add the "_contextmesh" metadata section with version, tags, language, and repo'
    ),
    "version": 'Add "version": "1.0.0" in the _contextmesh section',
    "tags": 'Add "tags": ["category"] in the _contextmesh section (e.g., ["github", "api"])',
    "language": 'Add "language": "typescript" (or python, rust, go, java)',
    "repo": 'Add "repo": "https://github.com/..." with your repository URL',
    "name": 'Add "name": "Tool Name" in the tool definition',
    "description": 'Add "description": "What this tool does" in the tool definition',
}

_PATTERN_SUGGESTIONS: dict[str, str] = {
    "id": (
        "Connector ID must contain only lowercase letters, numbers, and hyphens "
        '(e.g., "my-connector")'
    ),
    "tags": (
        "Tags must contain only lowercase letters, numbers, and hyphens "
        '(e.g., "github", "api-client")'
    ),
    "version": (
        'Version must follow semantic versioning format: MAJOR.MINOR.PATCH (e.g., "1.0.0")'
    ),
    "checksum": 'Checksum must be in format "sha256:<64 hex characters>"',
}

_FORMAT_SUGGESTIONS: dict[str, str] = {
    "email": 'Use a valid email address (e.g., "user@example.com")',
    "uri": (
        "Use a valid URL starting with http:// or https:// "
        '(e.g., "https://github.com/user/repo")'
    ),
    "date-time": 'Use ISO 8601 format (e.g., "2024-01-01T00:00:00Z")',
}

_JSON_TYPE_NAMES: list[tuple[type | tuple[type, ...], str]] = [
    (bool, "boolean"),
    ((int, float), "number"),
    (str, "string"),
    (list, "array"),
    (dict, "object"),
    (type(None), "null"),
]


@dataclass
class FieldViolation:
    """A single manifest field violation.

    Attributes:
        path: Slash-separated path to the offending value ('root' for the document)
        message: Human-readable message
        keyword: Schema keyword that failed (e.g., 'required', 'pattern')
        params: Keyword parameters (limit, allowed values, format, ...)
        line: 1-based line in the raw manifest, best-effort
        column: 1-based column in the raw manifest, best-effort
        suggestion: How to fix the violation
    """

    path: str
    message: str
    keyword: str | None = None
    params: dict[str, Any] = field(default_factory=dict)
    line: int | None = None
    column: int | None = None
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {"path": self.path, "message": self.message}
        if self.keyword:
            result["keyword"] = self.keyword
        if self.line is not None:
            result["line"] = self.line
        if self.column is not None:
            result["column"] = self.column
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result


class ValidationError(ContextMeshError):
    """Manifest validation failure.

    Raised when:
    - The manifest violates the connector schema
    - A semantic check fails (empty tools, duplicate names, bad version)

    The first violation is the primary error; the rest are kept on
    ``violations`` and rendered in verbose output.
    """

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        details: ErrorDetails | None = None,
        *,
        violations: list[FieldViolation] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, details, cause=cause)
        if not violations:
            violations = [
                FieldViolation(
                    path=self.details.field or "root",
                    message=message,
                    line=self.details.line,
                    column=self.details.column,
                    suggestion=self.details.suggestion,
                )
            ]
        self.violations = violations

    @property
    def primary(self) -> FieldViolation:
        """The violation promoted to the error message."""
        return self.violations[0]

    @classmethod
    def from_violations(
        cls,
        violations: list[FieldViolation],
        raw_content: str | None = None,
    ) -> ValidationError:
        """Create an error from collected violations.

        Args:
            violations: Ordered, non-empty violation list
            raw_content: Raw manifest text for line recovery

        Returns:
            ValidationError whose message is derived from the first violation
        """
        if not violations:
            raise ValueError("violations must not be empty")

        if raw_content is not None:
            for violation in violations:
                location = find_line_for_path(violation.path, raw_content)
                if location:
                    violation.line, violation.column = location

        primary = violations[0]
        details = ErrorDetails(
            field=primary.path,
            line=primary.line,
            column=primary.column,
            suggestion=primary.suggestion,
        )
        return cls(
            f"Manifest validation failed: {primary.message}",
            details,
            violations=violations,
        )

    @classmethod
    def from_schema_errors(
        cls,
        errors: Iterable[jsonschema.ValidationError],
        raw_content: str | None = None,
    ) -> ValidationError:
        """Create an error from jsonschema validation errors.

        Args:
            errors: Errors in the order the validator reported them
            raw_content: Raw manifest text for line recovery

        Returns:
            ValidationError carrying one violation per schema error
        """
        return cls.from_violations(
            [violation_from_schema_error(error) for error in errors],
            raw_content,
        )

    @classmethod
    def semantic(
        cls,
        message: str,
        *,
        field: str | None = None,
        suggestion: str | None = None,
        raw_content: str | None = None,
    ) -> ValidationError:
        """Create an error for a semantic check that the schema cannot express."""
        violation = FieldViolation(
            path=field or "root",
            message=message,
            keyword="semantic",
            suggestion=suggestion,
        )
        if raw_content is not None:
            location = find_line_for_path(violation.path, raw_content)
            if location:
                violation.line, violation.column = location
        details = ErrorDetails(
            field=field,
            line=violation.line,
            column=violation.column,
            suggestion=suggestion,
        )
        return cls(message, details, violations=[violation])

    def format(self, verbose: bool = False) -> str:
        """Format the error, listing remaining violations in verbose mode."""
        output = super().format(verbose)
        if verbose and len(self.violations) > 1:
            output += "\n\nAdditional validation errors:"
            for index, violation in enumerate(self.violations[1:], start=2):
                output += f"\n{index}. {violation.path}: {violation.message}"
        return output

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary including all violations."""
        result = super().to_dict()
        result["violations"] = [v.to_dict() for v in self.violations]
        return result


def violation_from_schema_error(error: jsonschema.ValidationError) -> FieldViolation:
    """Translate one jsonschema error into a FieldViolation.

    Message precedence follows the failed keyword: required, pattern,
    enum/const, format, minItems/maxItems, type; anything else keeps the
    schema message.
    """
    keyword = str(error.validator)
    segments = list(error.absolute_path)
    path = "/".join(str(s) for s in segments) or "root"
    params: dict[str, Any] = {}
    message = error.message
    suggestion: str | None = None

    if keyword == "required":
        name = _missing_property(error)
        params["missing_property"] = name
        message = f"Missing required property: {name}"
        suggestion = get_required_property_suggestion(name)
    elif keyword == "pattern":
        params["pattern"] = error.validator_value
        message = f"Invalid format: {error.message}"
        suggestion = get_pattern_suggestion(segments)
    elif keyword in ("enum", "const"):
        allowed = error.validator_value if keyword == "enum" else [error.validator_value]
        params["allowed_values"] = list(allowed)
        message = f"Invalid value. Allowed values: {', '.join(str(v) for v in allowed)}"
    elif keyword == "format":
        params["format"] = error.validator_value
        message = f"Invalid {error.validator_value} format"
        suggestion = get_format_suggestion(str(error.validator_value))
    elif keyword == "minItems":
        params["limit"] = error.validator_value
        message = f"Array must have at least {error.validator_value} items"
    elif keyword == "maxItems":
        params["limit"] = error.validator_value
        message = f"Array must have at most {error.validator_value} items"
    elif keyword == "type":
        expected = error.validator_value
        if isinstance(expected, list):
            expected = " or ".join(expected)
        params["type"] = expected
        message = f"Expected {expected} but got {json_type_name(error.instance)}"

    return FieldViolation(
        path=path,
        message=message,
        keyword=keyword,
        params=params,
        suggestion=suggestion,
    )


def _missing_property(error: jsonschema.ValidationError) -> str:
    match = _REQUIRED_RE.match(error.message)
    if match:
        return match.group("name")
    instance = error.instance if isinstance(error.instance, dict) else {}
    for name in error.validator_value:
        if name not in instance:
            return str(name)
    return "unknown"


def json_type_name(value: Any) -> str:
    """Return the JSON type name of a Python value."""
    for py_type, name in _JSON_TYPE_NAMES:
        if isinstance(value, py_type):
            return name
    return type(value).__name__


def find_line_for_path(path: str, raw_content: str) -> tuple[int, int] | None:
    """Find the first line containing the quoted deepest key of a path.

    Numeric array indices are skipped in favour of the enclosing key.

    Args:
        path: Slash-separated violation path
        raw_content: Raw manifest text

    Returns:
        (line, column), both 1-based, or None if not found
    """
    if not path or path == "root":
        return None

    keys = [part for part in path.split("/") if part and not part.isdigit()]
    if not keys:
        return None
    needle = f'"{keys[-1]}"'

    for index, line in enumerate(raw_content.splitlines()):
        column = line.find(needle)
        if column != -1:
            return index + 1, column + 1
    return None


def get_required_property_suggestion(name: str) -> str:
    """Suggestion for a missing required property."""
    return _REQUIRED_SUGGESTIONS.get(name, f'Add the required "{name}" property')


def get_pattern_suggestion(segments: list[Any]) -> str:
    """Suggestion for a pattern mismatch, keyed by the offending field."""
    for segment in reversed(segments):
        if isinstance(segment, str) and segment in _PATTERN_SUGGESTIONS:
            return _PATTERN_SUGGESTIONS[segment]
    return "Value must match the required pattern"


def get_format_suggestion(format_name: str) -> str:
    """Suggestion for a format mismatch, with one concrete example."""
    return _FORMAT_SUGGESTIONS.get(format_name, f"Value must be a valid {format_name}")
