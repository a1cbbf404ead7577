"""
Manifest layer - connector manifest models, loading and validation.
"""

from contextmesh.manifest.loader import (
    MANIFEST_FILENAME,
    default_manifest,
    derive_connector_id,
    ensure_manifest,
    load_manifest,
    load_raw_manifest,
    load_readme,
    parse_manifest_text,
    read_manifest_text,
)
from contextmesh.manifest.models import (
    SCHEMA_ID,
    AuthConfig,
    Author,
    ConnectorManifest,
    ContextMeshMetadata,
    Language,
    Tool,
)
from contextmesh.manifest.schema import CONNECTOR_SCHEMA
from contextmesh.manifest.validator import (
    KNOWN_REPO_HOSTS,
    ManifestValidator,
    ValidationResult,
    check_semantics,
    find_duplicate_names,
    get_validator,
    is_known_repo_host,
    is_strict_version,
    validate_manifest,
)

__all__ = [
    # Models
    "SCHEMA_ID",
    "AuthConfig",
    "Author",
    "ConnectorManifest",
    "ContextMeshMetadata",
    "Language",
    "Tool",
    # Loader
    "MANIFEST_FILENAME",
    "default_manifest",
    "derive_connector_id",
    "ensure_manifest",
    "load_manifest",
    "load_raw_manifest",
    "load_readme",
    "parse_manifest_text",
    "read_manifest_text",
    # Validation
    "CONNECTOR_SCHEMA",
    "KNOWN_REPO_HOSTS",
    "ManifestValidator",
    "ValidationResult",
    "check_semantics",
    "find_duplicate_names",
    "get_validator",
    "is_known_repo_host",
    "is_strict_version",
    "validate_manifest",
]
