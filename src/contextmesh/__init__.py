"""ContextMesh 连接器发布工具：校验、打包并发布连接器。

contextmesh: connector publishing for the ContextMesh registry.

Loads and validates a connector manifest, packs the connector directory into
a checksummed archive and publishes it through the registry's two-phase
protocol.
"""

from __future__ import annotations

from contextmesh.config import DEFAULT_REGISTRY_URL, PublishOptions
from contextmesh.errors import (
    AuthenticationError,
    ContextMeshError,
    ErrorKind,
    FileSystemError,
    NetworkError,
    ValidationError,
)
from contextmesh.manifest import ConnectorManifest, validate_manifest
from contextmesh.packaging import ArchiveResult, pack_directory, temporary_archive
from contextmesh.publisher import PublishResult, publish_connector
from contextmesh.registry import RegistryClient, RegistryRecord
from contextmesh.resilience import RetryConfig, RetryPolicy, with_retry

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Pipeline
    "PublishOptions",
    "PublishResult",
    "publish_connector",
    "DEFAULT_REGISTRY_URL",
    # Manifest
    "ConnectorManifest",
    "validate_manifest",
    # Packaging
    "ArchiveResult",
    "pack_directory",
    "temporary_archive",
    # Registry
    "RegistryClient",
    "RegistryRecord",
    # Resilience
    "RetryConfig",
    "RetryPolicy",
    "with_retry",
    # Errors
    "AuthenticationError",
    "ContextMeshError",
    "ErrorKind",
    "FileSystemError",
    "NetworkError",
    "ValidationError",
]
