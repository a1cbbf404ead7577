"""错误体系：提供带退出码的结构化错误类型。

Error taxonomy for contextmesh.

Provides typed errors with machine-readable kinds, remediation metadata,
and per-kind process exit codes.
"""

from contextmesh.errors.auth import AuthenticationError, TokenSource
from contextmesh.errors.base import (
    ContextMeshError,
    ErrorDetails,
    ErrorKind,
    format_stack,
    is_contextmesh_error,
    wrap_error,
)
from contextmesh.errors.classification import (
    DEFAULT_RATE_LIMIT_DELAY,
    FailureRule,
    TransportFailure,
    classify_status,
    classify_transport_error,
)
from contextmesh.errors.filesystem import FileOperation, FileSystemError
from contextmesh.errors.handler import exit_code_for, format_error, identify_error
from contextmesh.errors.network import NetworkError
from contextmesh.errors.validation import FieldViolation, ValidationError

__all__ = [
    # Base errors
    "ContextMeshError",
    "ErrorDetails",
    "ErrorKind",
    "format_stack",
    "is_contextmesh_error",
    "wrap_error",
    # Variants
    "AuthenticationError",
    "FieldViolation",
    "FileOperation",
    "FileSystemError",
    "NetworkError",
    "TokenSource",
    "ValidationError",
    # Classification
    "DEFAULT_RATE_LIMIT_DELAY",
    "FailureRule",
    "TransportFailure",
    "classify_status",
    "classify_transport_error",
    # Handling
    "exit_code_for",
    "format_error",
    "identify_error",
]
