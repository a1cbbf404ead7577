"""错误分类模块：将 HTTP 状态码与传输层失败映射到消息、建议和重试语义。

Error classification for registry communication.

Maps HTTP status codes and transport failures to a fixed message,
suggestion and retryability, so every NetworkError reads the same way
regardless of which call produced it.
"""

from __future__ import annotations

import contextlib
import errno
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

DEFAULT_RATE_LIMIT_DELAY = 60.0
"""Retry-after (seconds) assumed for 429 responses without a header."""


@dataclass(frozen=True)
class FailureRule:
    """How a failure is presented and whether it may be retried."""

    message: str
    suggestion: str | None = None
    retryable: bool = False


_STATUS_RULES: dict[int, FailureRule] = {
    400: FailureRule(
        "Bad request: Invalid data sent to server",
        "Check your manifest format and try again",
    ),
    401: FailureRule(
        "Authentication failed: Invalid or expired token",
        "Check your CONTEXTMESH_TOKEN or use --token flag with a valid token",
    ),
    403: FailureRule(
        "Permission denied: You do not have access to this resource",
        "Ensure you have the necessary permissions for this operation",
    ),
    404: FailureRule(
        "Resource not found",
        "Check the registry URL and connector ID",
    ),
    409: FailureRule(
        "Conflict: Resource already exists",
        "This version may already be published. Try incrementing the version number",
    ),
    413: FailureRule(
        "Payload too large: Connector package exceeds size limit",
        "Reduce the size of your connector package (check for large files)",
    ),
    422: FailureRule("Validation error: Server rejected the request"),
    429: FailureRule(
        "Rate limit exceeded",
        "Wait a few minutes before trying again",
        retryable=True,
    ),
}

_SERVER_ERROR_RULE = FailureRule(
    "Server error: The registry is experiencing issues",
    "Try again in a few minutes. If the problem persists, check https://status.contextmesh.io",
    retryable=True,
)


class TransportFailure(str, Enum):
    """Connection-level failure classes (no HTTP status available)."""

    CONNECTION_REFUSED = "connection_refused"
    HOST_NOT_FOUND = "host_not_found"
    TIMEOUT = "timeout"
    CONNECTION_RESET = "connection_reset"
    OTHER = "other"


_TRANSPORT_RULES: dict[TransportFailure, FailureRule] = {
    TransportFailure.CONNECTION_REFUSED: FailureRule(
        "Connection refused: Cannot reach the registry server",
        "Check your internet connection and the registry URL",
        retryable=True,
    ),
    TransportFailure.HOST_NOT_FOUND: FailureRule(
        "Server not found: Invalid registry URL",
        "Check the registry URL (default: https://api.contextmesh.io)",
    ),
    TransportFailure.TIMEOUT: FailureRule(
        "Request timeout: Server took too long to respond",
        "Check your internet connection and try again",
        retryable=True,
    ),
    TransportFailure.CONNECTION_RESET: FailureRule(
        "Connection reset: Server closed the connection unexpectedly",
        "Try again. This is usually a temporary issue",
        retryable=True,
    ),
    TransportFailure.OTHER: FailureRule("Network request failed"),
}

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "no address associated",
    "name resolution",
)


def classify_status(status_code: int) -> FailureRule:
    """Classify an HTTP error status.

    Args:
        status_code: HTTP status code (>= 400)

    Returns:
        FailureRule for the status; 5xx are retryable server errors
    """
    if status_code in _STATUS_RULES:
        return _STATUS_RULES[status_code]
    if 500 <= status_code < 600:
        return _SERVER_ERROR_RULE
    return FailureRule(f"HTTP {status_code} error")


def classify_transport_error(error: BaseException) -> TransportFailure:
    """Classify a connection-level failure.

    Inspects the httpx exception type and the chained OS-level cause.
    """
    if isinstance(error, httpx.TimeoutException):
        return TransportFailure.TIMEOUT

    for cause in _iter_causes(error):
        if isinstance(cause, socket.gaierror):
            return TransportFailure.HOST_NOT_FOUND
        if isinstance(cause, (TimeoutError, socket.timeout)):
            return TransportFailure.TIMEOUT
        if isinstance(cause, ConnectionRefusedError):
            return TransportFailure.CONNECTION_REFUSED
        if isinstance(cause, ConnectionResetError):
            return TransportFailure.CONNECTION_RESET
        if isinstance(cause, OSError) and cause.errno is not None:
            if cause.errno == errno.ECONNREFUSED:
                return TransportFailure.CONNECTION_REFUSED
            if cause.errno == errno.ECONNRESET:
                return TransportFailure.CONNECTION_RESET
            if cause.errno == errno.ETIMEDOUT:
                return TransportFailure.TIMEOUT

    text = str(error).lower()
    if any(marker in text for marker in _DNS_MARKERS):
        return TransportFailure.HOST_NOT_FOUND
    if "refused" in text:
        return TransportFailure.CONNECTION_REFUSED
    if "reset" in text:
        return TransportFailure.CONNECTION_RESET

    if isinstance(error, httpx.ConnectError):
        return TransportFailure.CONNECTION_REFUSED
    if isinstance(error, (httpx.RemoteProtocolError, httpx.ReadError)):
        return TransportFailure.CONNECTION_RESET
    return TransportFailure.OTHER


def transport_rule(failure: TransportFailure) -> FailureRule:
    """Get the presentation rule for a transport failure."""
    return _TRANSPORT_RULES[failure]


def _iter_causes(error: BaseException) -> list[BaseException]:
    seen: list[BaseException] = []
    current: BaseException | None = error
    while current is not None and current not in seen:
        seen.append(current)
        current = current.__cause__ or current.__context__
    return seen


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds.

    Returns:
        Delay in seconds, or None if absent or not numeric
    """
    if not value:
        return None
    with contextlib.suppress(ValueError):
        seconds = float(value.strip())
        if seconds >= 0:
            return seconds
    return None


def extract_error_message(body: Any) -> str | None:
    """Extract a server-supplied message from a response body.

    Supports multiple error envelope formats:
    - FastAPI style: {"detail": "..."} or {"detail": [...]}
    - Simple: {"message": "..."}
    - Nested: {"error": {"message": "..."}} or {"error": "..."}

    Args:
        body: Response body (parsed JSON)

    Returns:
        Error message if found, None otherwise
    """
    if not isinstance(body, dict):
        return None

    if "detail" in body:
        detail = body["detail"]
        if isinstance(detail, str):
            return detail
        if isinstance(detail, list) and detail:
            first = detail[0]
            if isinstance(first, dict) and isinstance(first.get("msg"), str):
                return first["msg"]
            return str(first)

    if isinstance(body.get("message"), str):
        return body["message"]

    if "error" in body:
        error = body["error"]
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
        if isinstance(error, str):
            return error

    return None
