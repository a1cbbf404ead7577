"""
Connector manifest models.

These Pydantic models represent the `connector.mcp.json` document. Structural
rules (patterns, enums, bounds) are enforced by the JSON Schema in
`contextmesh.manifest.schema`; the models describe the accepted shape.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

SCHEMA_ID = "https://mcp.dev/schema/1.0"
"""Schema identifier every manifest must declare."""


class Language(str, Enum):
    """Supported connector source languages."""

    TYPESCRIPT = "typescript"
    PYTHON = "python"
    RUST = "rust"
    GO = "go"
    JAVA = "java"


class Tool(BaseModel):
    """One invocable capability of a connector."""

    model_config = ConfigDict(extra="allow", frozen=True)

    name: str = Field(description="Tool name, unique within the manifest")
    description: str = Field(description="What this tool does")
    input_schema: dict[str, Any] | None = Field(default=None, description="Input JSON Schema")
    output_schema: dict[str, Any] | None = Field(default=None, description="Output JSON Schema")


class AuthConfig(BaseModel):
    """Authentication the connector requires from its users."""

    model_config = ConfigDict(extra="allow", frozen=True)

    type: Literal["oauth2", "api_key", "basic"] = Field(description="Auth type")
    authorization_url: str | None = Field(default=None, description="OAuth2 authorization URL")
    token_url: str | None = Field(default=None, description="OAuth2 token URL")
    scopes: list[str] | None = Field(default=None, description="OAuth2 scopes")
    location: str | None = Field(default=None, description="API key location (header, query)")
    name: str | None = Field(default=None, description="API key parameter name")
    scheme: str | None = Field(default=None, description="HTTP auth scheme")


class Author(BaseModel):
    """Connector author."""

    model_config = ConfigDict(extra="allow", frozen=True)

    name: str | None = None
    email: str | None = None
    url: str | None = None


class ContextMeshMetadata(BaseModel):
    """Registry metadata (the `_contextmesh` section)."""

    model_config = ConfigDict(extra="allow", frozen=True)

    version: str = Field(description="Semantic version MAJOR.MINOR.PATCH")
    tags: list[str] = Field(description="1-10 lowercase tags")
    language: Language = Field(description="Source language")
    repo: str = Field(description="Source repository URL")
    checksum: str | None = Field(
        default=None, description="Archive checksum, written by the publish pipeline"
    )
    author: Author | None = Field(default=None, description="Connector author")
    license: str | None = Field(default=None, description="SPDX license identifier")
    tested_with: list[str] | None = Field(default=None, description="Tested client versions")


class ConnectorManifest(BaseModel):
    """Declarative description of a connector.

    Instances are immutable snapshots of the file on disk; use
    :meth:`with_checksum` to derive the copy that is sent to the registry.
    """

    model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

    schema_ref: str = Field(alias="schema", description="Schema identifier")
    id: str = Field(description="Connector slug")
    name: str | None = Field(default=None, description="Display name")
    description: str | None = Field(default=None, description="Connector description")
    tools: list[Tool] = Field(default_factory=list, description="Tools the connector exposes")
    auth: AuthConfig | None = Field(default=None, description="Authentication config")
    metadata: ContextMeshMetadata = Field(alias="_contextmesh", description="Registry metadata")

    @property
    def version(self) -> str:
        """Connector version from the metadata section."""
        return self.metadata.version

    @property
    def tool_names(self) -> list[str]:
        """Tool names in declaration order."""
        return [tool.name for tool in self.tools]

    def with_checksum(self, checksum: str) -> ConnectorManifest:
        """Return a copy whose metadata carries ``checksum``."""
        metadata = self.metadata.model_copy(update={"checksum": checksum})
        return self.model_copy(update={"metadata": metadata})

    def to_payload(self) -> dict[str, Any]:
        """Serialize with the on-disk key names, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
