"""注册中心客户端：基于 httpx 的两阶段发布协议。

Registry client using httpx for async requests.

Implements the two-phase publish protocol:
1. POST /v1/connectors creates the metadata record
2. PUT <upload_url> stores the archive at the returned location
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from contextmesh.errors import FileOperation, FileSystemError, NetworkError
from contextmesh.packaging import ARCHIVE_MEDIA_TYPE
from contextmesh.telemetry import get_logger

if TYPE_CHECKING:
    from contextmesh.manifest import ConnectorManifest

CONNECTORS_PATH = "/v1/connectors"

# Default timeouts
_DEFAULT_TIMEOUT = 30.0
_DEFAULT_CONNECT_TIMEOUT = 10.0

_UA_VERSION: str | None = None

logger = get_logger("contextmesh.registry")


def _get_ua_version() -> str:
    """Get package version for User-Agent (cached)."""
    global _UA_VERSION
    if _UA_VERSION is None:
        try:
            _UA_VERSION = version("contextmesh")
        except PackageNotFoundError:
            _UA_VERSION = "0.0.0"
    return _UA_VERSION


class RegistryRecord(BaseModel):
    """Metadata record created by the registry."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    version: str
    upload_url: str | None = None


class RegistryClient:
    """Async client for the connector registry.

    Example:
        >>> async with RegistryClient(url, token) as client:
        ...     record = await client.create_record(manifest, readme)
        ...     if record.upload_url:
        ...         await client.upload_artifact(record.upload_url, archive_path)
    """

    def __init__(
        self,
        registry_url: str,
        token: str,
        timeout: float | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the registry client.

        Args:
            registry_url: Registry base URL
            token: Bearer token for the create phase
            timeout: Request timeout in seconds
            transport: Custom httpx transport
        """
        self._registry_url = registry_url.rstrip("/")
        self._token = token
        self._timeout = timeout if timeout is not None else _DEFAULT_TIMEOUT
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def registry_url(self) -> str:
        return self._registry_url

    @property
    def connectors_endpoint(self) -> str:
        return f"{self._registry_url}{CONNECTORS_PATH}"

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=_DEFAULT_CONNECT_TIMEOUT),
                transport=self._transport,
                headers={"User-Agent": f"contextmesh/{_get_ua_version()}"},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> RegistryClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def _send(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        json: dict[str, Any] | None = None,
        content: bytes | None = None,
    ) -> httpx.Response:
        """Send a request and translate failures.

        Raises:
            NetworkError: On transport failures and HTTP status >= 400
        """
        client = self._get_client()
        try:
            response = await client.request(
                method, url, headers=headers, json=json, content=content
            )
        except httpx.HTTPError as e:
            raise NetworkError.from_transport_error(e, url, method) from e

        if response.status_code >= 400:
            raise NetworkError.from_response(response, url, method)
        return response

    async def create_record(
        self,
        manifest: ConnectorManifest,
        readme: str | None = None,
    ) -> RegistryRecord:
        """Create the connector metadata record.

        Args:
            manifest: Validated manifest (with checksum merged in)
            readme: Optional README text

        Returns:
            The created record

        Raises:
            NetworkError: On failure or a malformed response
        """
        payload: dict[str, Any] = {"manifest": manifest.to_payload()}
        if readme is not None:
            payload["readme"] = readme

        endpoint = self.connectors_endpoint
        logger.debug("Creating registry record", endpoint=endpoint, connector_id=manifest.id)
        response = await self._send(
            "POST",
            endpoint,
            headers={
                "Authorization": f"Bearer {self._token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
            json=payload,
        )

        try:
            return RegistryRecord.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise NetworkError(
                "Invalid response from registry",
                status_code=response.status_code,
                endpoint=endpoint,
                method="POST",
                cause=e,
            ) from e

    async def upload_artifact(self, upload_url: str, archive_path: str | Path) -> None:
        """Upload the archive bytes to the location returned by create_record.

        Never retried: the upload target is single-use.

        Args:
            upload_url: Upload location
            archive_path: Archive to send

        Raises:
            FileSystemError: If the archive cannot be read
            NetworkError: On transport failures and HTTP status >= 400
        """
        path = Path(archive_path)
        try:
            body = path.read_bytes()
        except OSError as e:
            raise FileSystemError.from_os_error(e, str(path), FileOperation.READ) from e

        logger.debug("Uploading artifact", bytes=len(body))
        await self._send(
            "PUT",
            upload_url,
            headers={"Content-Type": ARCHIVE_MEDIA_TYPE},
            content=body,
        )
