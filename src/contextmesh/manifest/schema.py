"""
JSON Schema for connector manifests.

The `required` lists are ordered: validation reports missing fields in this
order.
"""

from __future__ import annotations

from typing import Any

from contextmesh.manifest.models import SCHEMA_ID, Language

SLUG_PATTERN = "^[a-z0-9-]+\\Z"
VERSION_PATTERN = "^[0-9]+\\.[0-9]+\\.[0-9]+\\Z"
CHECKSUM_PATTERN = "^sha256:[a-f0-9]{64}\\Z"

CONNECTOR_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["schema", "id", "tools", "_contextmesh"],
    "properties": {
        "schema": {"type": "string", "const": SCHEMA_ID},
        "id": {"type": "string", "pattern": SLUG_PATTERN},
        "name": {"type": "string"},
        "description": {"type": "string"},
        "tools": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "description"],
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "input_schema": {"type": "object"},
                    "output_schema": {"type": "object"},
                },
            },
        },
        "auth": {
            "type": "object",
            "required": ["type"],
            "properties": {
                "type": {"type": "string", "enum": ["oauth2", "api_key", "basic"]},
                "authorization_url": {"type": "string", "format": "uri"},
                "token_url": {"type": "string", "format": "uri"},
                "scopes": {"type": "array", "items": {"type": "string"}},
                "location": {"type": "string"},
                "name": {"type": "string"},
                "scheme": {"type": "string"},
            },
        },
        "_contextmesh": {
            "type": "object",
            "required": ["version", "tags", "language", "repo"],
            "properties": {
                "version": {"type": "string", "pattern": VERSION_PATTERN},
                "tags": {
                    "type": "array",
                    "items": {"type": "string", "pattern": SLUG_PATTERN},
                    "minItems": 1,
                    "maxItems": 10,
                },
                "language": {"type": "string", "enum": [lang.value for lang in Language]},
                "repo": {"type": "string", "format": "uri"},
                "checksum": {"type": "string", "pattern": CHECKSUM_PATTERN},
                "tested_with": {"type": "array", "items": {"type": "string"}},
                "author": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "email": {"type": "string", "format": "email"},
                        "url": {"type": "string", "format": "uri"},
                    },
                },
                "license": {"type": "string"},
            },
        },
    },
}
