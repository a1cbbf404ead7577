"""
Top-level error handling: identification, formatting and exit codes.

Foreign exceptions that reach the boundary are upgraded to the closest
taxonomy kind by heuristic. The match is best-effort, not guaranteed accurate.
"""

from __future__ import annotations

import httpx

from contextmesh.errors.auth import AuthenticationError
from contextmesh.errors.base import ContextMeshError, ErrorKind, format_stack
from contextmesh.errors.filesystem import KNOWN_ERRNOS, FileSystemError
from contextmesh.errors.network import NetworkError
from contextmesh.errors.validation import ValidationError


def identify_error(error: BaseException) -> ContextMeshError | None:
    """Upgrade a foreign exception to the closest ContextMeshError.

    Args:
        error: Any exception

    Returns:
        The error itself if already a ContextMeshError, an upgraded error,
        or None if no heuristic matched
    """
    if isinstance(error, ContextMeshError):
        return error

    if isinstance(error, httpx.HTTPStatusError):
        return NetworkError.from_response(error.response)
    if isinstance(error, httpx.HTTPError):
        return NetworkError.from_transport_error(error)

    if isinstance(error, OSError) and error.errno in KNOWN_ERRNOS:
        return FileSystemError.from_os_error(error)

    text = str(error).lower()
    if "validation" in text or "invalid" in text:
        return ValidationError(str(error), cause=error)
    if "auth" in text or "token" in text:
        return AuthenticationError(str(error), cause=error)

    return None


def exit_code_for(error: BaseException) -> int:
    """Process exit code for an error (1 when unclassified)."""
    identified = identify_error(error)
    if identified is None:
        return ErrorKind.GENERAL_ERROR.exit_code
    return identified.exit_code


def format_error(error: BaseException, verbose: bool = False) -> str:
    """Format any exception for display.

    Args:
        error: The exception to render
        verbose: Append the causal stack

    Returns:
        Display string
    """
    identified = identify_error(error)
    if identified is not None:
        return identified.format(verbose)

    output = f"Error: {error}"
    if verbose:
        output += "\n\n" + format_stack(error)
    return output
