"""
Publish configuration.

Defaults and environment variable names. Only the CLI reads the environment;
the core receives everything through PublishOptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from contextmesh.resilience import RetryConfig

DEFAULT_REGISTRY_URL = "https://api.contextmesh.io"
DEFAULT_TIMEOUT_SECS = 30.0

# Environment variables
TOKEN_ENV = "CONTEXTMESH_TOKEN"
REGISTRY_ENV = "CONTEXTMESH_REGISTRY"
TIMEOUT_ENV = "CONTEXTMESH_HTTP_TIMEOUT_SECS"


@dataclass
class PublishOptions:
    """Options for a single publish.

    Attributes:
        directory: Connector directory
        registry_url: Registry base URL
        token: Bearer token
        timeout: HTTP timeout in seconds
        retry: Retry configuration for the create phase
    """

    directory: Path
    registry_url: str = DEFAULT_REGISTRY_URL
    token: str | None = None
    timeout: float = DEFAULT_TIMEOUT_SECS
    retry: RetryConfig = field(default_factory=RetryConfig)

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)
        self.registry_url = self.registry_url.rstrip("/")
