"""错误基类：提供分层错误体系、错误种类与退出码。

Base error classes for contextmesh.

Provides a layered error hierarchy:
- ContextMeshError: Base class for all pipeline errors
- ValidationError: Manifest schema/semantic violations
- NetworkError: Registry transport and HTTP errors
- AuthenticationError: Missing or rejected credentials
- FileSystemError: Manifest/archive I/O errors
"""

from __future__ import annotations

import dataclasses
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Machine-readable error kind.

    Each kind maps to a distinct process exit code.
    """

    GENERAL_ERROR = "GENERAL_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    FILESYSTEM_ERROR = "FILESYSTEM_ERROR"

    @property
    def exit_code(self) -> int:
        """Return the process exit code for this kind."""
        return _EXIT_CODES[self]


_EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.GENERAL_ERROR: 1,
    ErrorKind.AUTH_ERROR: 2,
    ErrorKind.VALIDATION_ERROR: 3,
    ErrorKind.NETWORK_ERROR: 4,
    ErrorKind.FILESYSTEM_ERROR: 5,
}


@dataclass
class ErrorDetails:
    """Structured remediation metadata shared by every error kind.

    Kind-specific payload lives on the error subclasses; ``extra`` only holds
    optional diagnostic text that has no dedicated field.
    """

    field: str | None = None
    """Path to the problematic field (e.g., '_contextmesh/version')"""

    line: int | None = None
    """1-based source line, best-effort"""

    column: int | None = None
    """1-based source column, best-effort"""

    suggestion: str | None = None
    """Actionable hint for resolving the error"""

    extra: dict[str, Any] = dataclasses.field(default_factory=dict)
    """Additional diagnostic text"""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, dropping unset fields."""
        result: dict[str, Any] = {}
        if self.field:
            result["field"] = self.field
        if self.line is not None:
            result["line"] = self.line
        if self.column is not None:
            result["column"] = self.column
        if self.suggestion:
            result["suggestion"] = self.suggestion
        result.update(self.extra)
        return result


class ContextMeshError(Exception):
    """Base class for all contextmesh errors.

    All errors raised by the publishing pipeline inherit from this class,
    making it easy to catch them with a single except clause.

    Attributes:
        kind: Machine-readable error kind
        message: Human-readable error message
        details: Structured remediation metadata
        timestamp: When the error was created (UTC)
    """

    kind: ErrorKind = ErrorKind.GENERAL_ERROR

    def __init__(
        self,
        message: str,
        details: ErrorDetails | None = None,
        *,
        cause: BaseException | None = None,
    ) -> None:
        self.message = message
        self.details = details or ErrorDetails()
        self.timestamp = datetime.now(timezone.utc)
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def code(self) -> str:
        """Error kind as a string (e.g., 'NETWORK_ERROR')."""
        return self.kind.value

    @property
    def exit_code(self) -> int:
        """Process exit code for this error."""
        return self.kind.exit_code

    @property
    def suggestion(self) -> str | None:
        """Shortcut for ``details.suggestion``."""
        return self.details.suggestion

    def with_suggestion(self, suggestion: str) -> ContextMeshError:
        """Add a suggestion to this error."""
        self.details.suggestion = suggestion
        return self

    def _format_lines(self) -> list[str]:
        """Render the message and common detail fields."""
        lines = [self.message]
        if self.details.field:
            lines.append(f"  Field: {self.details.field}")
        if self.details.line:
            location = f"  Location: Line {self.details.line}"
            if self.details.column:
                location += f", Column {self.details.column}"
            lines.append(location)
        if self.details.suggestion:
            lines.append(f"  Suggestion: {self.details.suggestion}")
        return lines

    def format(self, verbose: bool = False) -> str:
        """Format the error for display.

        Args:
            verbose: Append the causal stack

        Returns:
            Multi-line display string
        """
        output = "\n".join(self._format_lines())
        if verbose:
            output += "\n\n" + format_stack(self)
        return output

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary for structured logging."""
        return {
            "name": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details.to_dict(),
            "timestamp": self.timestamp.isoformat(),
        }


def format_stack(error: BaseException) -> str:
    """Render the traceback of an error including its chained causes."""
    rendered = "".join(traceback.format_exception(type(error), error, error.__traceback__))
    return f"Stack trace:\n{rendered.rstrip()}"


def is_contextmesh_error(error: object) -> bool:
    """Check if an object is a ContextMeshError."""
    return isinstance(error, ContextMeshError)


def wrap_error(error: BaseException, message: str | None = None) -> ContextMeshError:
    """Wrap an arbitrary exception in a general ContextMeshError.

    ContextMeshError instances are returned unchanged.
    """
    if isinstance(error, ContextMeshError):
        return error
    return ContextMeshError(message or str(error) or type(error).__name__, cause=error)
