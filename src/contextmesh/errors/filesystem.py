"""
Filesystem errors for manifest and archive I/O.
"""

from __future__ import annotations

import errno
from enum import Enum
from typing import Any

from contextmesh.errors.base import ContextMeshError, ErrorDetails, ErrorKind


class FileOperation(str, Enum):
    """Filesystem operation that failed."""

    READ = "read"
    WRITE = "write"
    DELETE = "delete"
    CREATE = "create"
    ACCESS = "access"


# errno -> (message template, suggestion); {path} is substituted
_OS_ERROR_RULES: dict[int, tuple[str, str]] = {
    errno.ENOENT: (
        "File or directory not found: {path}",
        "Check that the file exists and the path is correct",
    ),
    errno.EACCES: (
        "Permission denied: {path}",
        "Check file permissions or run with appropriate privileges",
    ),
    errno.EPERM: (
        "Permission denied: {path}",
        "Check file permissions or run with appropriate privileges",
    ),
    errno.EISDIR: (
        "Expected a file but found a directory: {path}",
        "Provide a path to a file, not a directory",
    ),
    errno.ENOTDIR: (
        "Expected a directory but found a file: {path}",
        "Provide a path to a directory, not a file",
    ),
    errno.ENOSPC: (
        "No space left on device",
        "Free up disk space and try again",
    ),
    errno.EMFILE: (
        "Too many open files",
        "Close some applications and try again",
    ),
    errno.EEXIST: (
        "File already exists: {path}",
        "Remove the existing file or choose a different name",
    ),
    errno.EROFS: (
        "Read-only file system",
        "Cannot write to a read-only file system",
    ),
}

KNOWN_ERRNOS: frozenset[int] = frozenset(_OS_ERROR_RULES)
"""errno values that have a dedicated message."""


class FileSystemError(ContextMeshError):
    """Error reading or writing connector files.

    Attributes:
        path: Path involved in the failure
        operation: Operation that failed
        error_code: Symbolic errno name (e.g., 'ENOENT')
    """

    kind = ErrorKind.FILESYSTEM_ERROR

    def __init__(
        self,
        message: str,
        details: ErrorDetails | None = None,
        *,
        path: str | None = None,
        operation: FileOperation | None = None,
        error_code: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, details, cause=cause)
        self.path = path
        self.operation = operation
        self.error_code = error_code

    @classmethod
    def from_os_error(
        cls,
        error: OSError,
        path: str | None = None,
        operation: FileOperation | None = None,
    ) -> FileSystemError:
        """Translate an OSError through the errno table.

        Args:
            error: The underlying OS error
            path: Path involved (defaults to ``error.filename``)
            operation: Operation that failed

        Returns:
            FileSystemError with a named message and suggestion
        """
        resolved_path = path or (str(error.filename) if error.filename else None)
        error_code = errno.errorcode.get(error.errno) if error.errno else None
        rule = _OS_ERROR_RULES.get(error.errno) if error.errno else None

        if rule:
            message = rule[0].format(path=resolved_path or "<unknown>")
            suggestion: str | None = rule[1]
        else:
            message = error.strerror or str(error) or "File system operation failed"
            suggestion = None

        return cls(
            message,
            ErrorDetails(suggestion=suggestion),
            path=resolved_path,
            operation=operation,
            error_code=error_code,
            cause=error,
        )

    @classmethod
    def file_not_found(cls, path: str) -> FileSystemError:
        """The file does not exist."""
        return cls(
            f"File not found: {path}",
            ErrorDetails(suggestion="Make sure the file exists and the path is correct"),
            path=path,
            operation=FileOperation.READ,
            error_code="ENOENT",
        )

    @classmethod
    def directory_not_found(cls, path: str) -> FileSystemError:
        """The connector directory does not exist."""
        return cls(
            f"Directory not found: {path}",
            ErrorDetails(
                suggestion='Make sure the directory exists or use "." for current directory'
            ),
            path=path,
            operation=FileOperation.ACCESS,
            error_code="ENOENT",
        )

    @classmethod
    def permission_denied(
        cls, path: str, operation: FileOperation = FileOperation.ACCESS
    ) -> FileSystemError:
        """The process may not perform ``operation`` on ``path``."""
        return cls(
            f"Permission denied: Cannot {operation.value} {path}",
            ErrorDetails(suggestion="Check file permissions or run with appropriate privileges"),
            path=path,
            operation=operation,
            error_code="EACCES",
        )

    @classmethod
    def manifest_not_found(cls, directory: str) -> FileSystemError:
        """No manifest in the connector directory."""
        return cls(
            "No connector.mcp.json found in directory",
            ErrorDetails(
                suggestion=(
                    "Run this command from a connector directory or specify the path.\n"
                    "  The command will create a basic manifest if none exists."
                )
            ),
            path=f"{directory}/connector.mcp.json",
            operation=FileOperation.READ,
            error_code="ENOENT",
        )

    @classmethod
    def invalid_content(
        cls, path: str, reason: str, cause: BaseException | None = None
    ) -> FileSystemError:
        """The manifest could not be parsed."""
        return cls(
            f"Invalid manifest content in {path}: {reason}",
            ErrorDetails(suggestion="Make sure the manifest is a valid JSON object"),
            path=path,
            operation=FileOperation.READ,
            cause=cause,
        )

    @classmethod
    def cannot_create_archive(
        cls, reason: str | None = None, cause: BaseException | None = None
    ) -> FileSystemError:
        """The connector archive could not be written."""
        message = "Failed to create connector archive"
        if reason:
            message += f": {reason}"
        return cls(
            message,
            ErrorDetails(suggestion="Ensure you have write permissions and sufficient disk space"),
            operation=FileOperation.WRITE,
            cause=cause,
        )

    def _format_lines(self) -> list[str]:
        lines = super()._format_lines()
        if self.path:
            lines.append(f"  Path: {self.path}")
        if self.operation:
            lines.append(f"  Operation: {self.operation.value}")
        if self.error_code:
            lines.append(f"  Error code: {self.error_code}")
        return lines

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with filesystem details."""
        result = super().to_dict()
        result["details"].update(
            {
                "path": self.path,
                "operation": self.operation.value if self.operation else None,
                "error_code": self.error_code,
            }
        )
        return result
