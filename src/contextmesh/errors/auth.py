"""
Authentication errors.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from contextmesh.errors.base import ContextMeshError, ErrorDetails, ErrorKind

_TOKENS_URL = "https://app.contextmesh.io/settings/tokens"


class TokenSource(str, Enum):
    """Where the authentication token came from."""

    ENVIRONMENT = "environment"
    FLAG = "flag"
    FILE = "file"


class AuthenticationError(ContextMeshError):
    """Missing, invalid or insufficient credentials.

    Attributes:
        token_source: Where the token was read from, if known
        token_present: Whether a token was supplied at all
    """

    kind = ErrorKind.AUTH_ERROR

    def __init__(
        self,
        message: str,
        details: ErrorDetails | None = None,
        *,
        token_source: TokenSource | None = None,
        token_present: bool | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, details, cause=cause)
        self.token_source = token_source
        self.token_present = token_present

    @classmethod
    def missing_token(cls) -> AuthenticationError:
        """No token was provided via flag or environment."""
        return cls(
            "No authentication token provided",
            ErrorDetails(
                suggestion=(
                    "Set CONTEXTMESH_TOKEN environment variable or use --token flag\n"
                    '  Example: export CONTEXTMESH_TOKEN="your-token-here"\n'
                    '  Or: contextmesh publish --token "your-token-here"'
                )
            ),
            token_present=False,
        )

    @classmethod
    def invalid_token(
        cls, source: TokenSource = TokenSource.ENVIRONMENT
    ) -> AuthenticationError:
        """The registry rejected the token."""
        return cls(
            "Invalid authentication token",
            ErrorDetails(
                suggestion=(
                    "Your token may be expired or invalid. To get a new token:\n"
                    f"  1. Visit {_TOKENS_URL}\n"
                    "  2. Generate a new API token\n"
                    "  3. Update your CONTEXTMESH_TOKEN environment variable"
                )
            ),
            token_source=source,
            token_present=True,
        )

    @classmethod
    def expired_token(cls) -> AuthenticationError:
        """The token has expired."""
        return cls(
            "Authentication token has expired",
            ErrorDetails(
                suggestion=(
                    "Your token has expired. Generate a new one:\n"
                    f"  1. Visit {_TOKENS_URL}\n"
                    "  2. Generate a new API token\n"
                    "  3. Update your CONTEXTMESH_TOKEN environment variable"
                )
            ),
            token_present=True,
        )

    @classmethod
    def insufficient_permissions(cls, action: str) -> AuthenticationError:
        """The token lacks the scope required for ``action``."""
        return cls(
            f"Insufficient permissions to {action}",
            ErrorDetails(
                suggestion=(
                    "Your token does not have the required permissions.\n"
                    '  Ensure your token has "write:connectors" scope for publishing.\n'
                    f"  Generate a new token with proper permissions at:\n  {_TOKENS_URL}"
                )
            ),
            token_present=True,
        )

    def _format_lines(self) -> list[str]:
        lines = super()._format_lines()
        if self.token_source:
            lines.append(f"  Token source: {self.token_source.value}")
        if self.token_present is not None:
            lines.append(f"  Token present: {'Yes' if self.token_present else 'No'}")
        return lines

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary with token details."""
        result = super().to_dict()
        if self.token_source:
            result["details"]["token_source"] = self.token_source.value
        if self.token_present is not None:
            result["details"]["token_present"] = self.token_present
        return result
