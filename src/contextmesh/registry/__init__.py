"""
Registry layer - client for the connector registry HTTP API.
"""

from contextmesh.registry.client import CONNECTORS_PATH, RegistryClient, RegistryRecord

__all__ = [
    "CONNECTORS_PATH",
    "RegistryClient",
    "RegistryRecord",
]
