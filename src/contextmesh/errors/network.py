"""
Network errors raised while talking to the registry.
"""

from __future__ import annotations

import contextlib
from typing import TYPE_CHECKING, Any

from contextmesh.errors.base import ContextMeshError, ErrorDetails, ErrorKind
from contextmesh.errors.classification import (
    DEFAULT_RATE_LIMIT_DELAY,
    classify_status,
    classify_transport_error,
    extract_error_message,
    parse_retry_after,
    transport_rule,
)

if TYPE_CHECKING:
    import httpx


class NetworkError(ContextMeshError):
    """Error during registry communication.

    Raised when:
    - The registry answers with an HTTP error status
    - The connection is refused, reset or times out
    - The registry host cannot be resolved

    Attributes:
        status_code: HTTP status code, if a response was received
        endpoint: Request URL
        method: HTTP method
        response_data: Parsed response body, if any
        retryable: Whether the failure is transient
        retry_after: Server-supplied retry delay in seconds
    """

    kind = ErrorKind.NETWORK_ERROR

    def __init__(
        self,
        message: str,
        details: ErrorDetails | None = None,
        *,
        status_code: int | None = None,
        endpoint: str | None = None,
        method: str | None = None,
        response_data: Any = None,
        retryable: bool = False,
        retry_after: float | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, details, cause=cause)
        self.status_code = status_code
        self.endpoint = endpoint
        self.method = method
        self.response_data = response_data
        self.retryable = retryable
        self.retry_after = retry_after

    def is_retryable(self) -> bool:
        """Check if this error is potentially retryable."""
        return self.retryable

    @property
    def retry_delay(self) -> float | None:
        """Server-supplied retry delay in seconds, or None."""
        return self.retry_after

    @classmethod
    def from_response(
        cls,
        response: httpx.Response,
        endpoint: str | None = None,
        method: str | None = None,
    ) -> NetworkError:
        """Create a NetworkError from an HTTP error response.

        Args:
            response: Response with status >= 400
            endpoint: Request URL (defaults to the response's request URL)
            method: HTTP method (defaults to the response's request method)

        Returns:
            NetworkError classified by status code
        """
        status_code = response.status_code
        rule = classify_status(status_code)

        body: Any = None
        if response.content:
            with contextlib.suppress(ValueError):
                body = response.json()

        with contextlib.suppress(RuntimeError):
            request = response.request
            endpoint = endpoint or str(request.url)
            method = method or request.method

        retry_after = None
        if status_code == 429:
            retry_after = parse_retry_after(response.headers.get("retry-after"))
            if retry_after is None:
                retry_after = DEFAULT_RATE_LIMIT_DELAY

        message = rule.message
        server_message = extract_error_message(body)
        if server_message and server_message not in message:
            message = f"{message}: {server_message}"

        return cls(
            message,
            ErrorDetails(suggestion=rule.suggestion),
            status_code=status_code,
            endpoint=endpoint,
            method=method,
            response_data=body,
            retryable=rule.retryable,
            retry_after=retry_after,
        )

    @classmethod
    def from_transport_error(
        cls,
        error: BaseException,
        endpoint: str | None = None,
        method: str | None = None,
    ) -> NetworkError:
        """Create a NetworkError from a connection-level failure.

        Args:
            error: httpx (or OS-level) exception
            endpoint: Request URL
            method: HTTP method

        Returns:
            NetworkError with the original exception as cause
        """
        failure = classify_transport_error(error)
        rule = transport_rule(failure)

        with contextlib.suppress(AttributeError, RuntimeError):
            request = error.request  # type: ignore[attr-defined]
            endpoint = endpoint or str(request.url)
            method = method or request.method

        return cls(
            rule.message,
            ErrorDetails(suggestion=rule.suggestion, extra={"failure": failure.value}),
            endpoint=endpoint,
            method=method,
            retryable=rule.retryable,
            cause=error,
        )

    def _format_lines(self) -> list[str]:
        lines = super()._format_lines()
        if self.status_code:
            lines[0] = f"HTTP {self.status_code}: {lines[0]}"
        if self.endpoint:
            lines.append(f"  Endpoint: {self.method or 'GET'} {self.endpoint}")
        if self.retryable:
            hint = "  This error may be temporary. You can try again."
            if self.retry_after:
                hint += f" Wait {self.retry_after:g} seconds before retrying."
            lines.append(hint)
        return lines

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with network details."""
        result = super().to_dict()
        result["details"].update(
            {
                "status_code": self.status_code,
                "endpoint": self.endpoint,
                "method": self.method,
                "retryable": self.retryable,
                "retry_after": self.retry_after,
            }
        )
        return result
