"""
Connector publisher.

Runs the publish pipeline strictly in order:
load -> validate -> pack -> create record (retried) -> upload (not retried).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from contextmesh.errors import AuthenticationError, NetworkError
from contextmesh.manifest import (
    MANIFEST_FILENAME,
    ConnectorManifest,
    load_readme,
    validate_manifest,
)
from contextmesh.packaging import temporary_archive
from contextmesh.registry import RegistryClient, RegistryRecord
from contextmesh.resilience import with_retry
from contextmesh.telemetry import LogContext, clear_log_context, get_logger, set_log_context

if TYPE_CHECKING:
    from contextmesh.config import PublishOptions

logger = get_logger("contextmesh.publisher")


@dataclass
class PublishResult:
    """Outcome of a completed two-phase publish.

    Attributes:
        id: Connector id assigned by the registry
        version: Published version
        checksum: Archive checksum sent with the manifest
        upload_url: Location the archive was uploaded to, if any
    """

    id: str
    version: str
    checksum: str
    upload_url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "version": self.version,
            "checksum": self.checksum,
            "upload_url": self.upload_url,
        }


async def publish_connector(
    options: PublishOptions,
    manifest: ConnectorManifest | None = None,
    *,
    client: RegistryClient | None = None,
) -> PublishResult:
    """Publish a connector directory to the registry.

    If the upload fails after the record was created, the record is left
    without an artifact; the failure is logged and re-raised as is.

    Args:
        options: Publish options
        manifest: Already validated manifest (loaded from the directory if None)
        client: Registry client to use (one is created and closed if None)

    Returns:
        PublishResult on full success of both phases

    Raises:
        AuthenticationError: If no token is configured
        FileSystemError: If the manifest or archive cannot be read or written
        ValidationError: If the manifest is invalid
        NetworkError: If either registry phase fails
    """
    if not options.token:
        raise AuthenticationError.missing_token()

    if manifest is None:
        manifest = validate_manifest(options.directory / MANIFEST_FILENAME)

    set_log_context(
        LogContext(
            connector_id=manifest.id,
            version=manifest.version,
            registry=options.registry_url,
        )
    )
    owns_client = client is None
    if client is None:
        client = RegistryClient(options.registry_url, options.token, options.timeout)

    try:
        readme = load_readme(options.directory)
        with temporary_archive(options.directory) as archive:
            publish_manifest = manifest.with_checksum(archive.checksum)
            record = await _create_record(client, publish_manifest, readme, options)

            if record.upload_url:
                try:
                    await client.upload_artifact(record.upload_url, archive.path)
                except Exception as e:
                    logger.error(
                        "Upload failed after the registry record was created; "
                        "the record has no artifact",
                        record_id=record.id,
                        version=record.version,
                        error=str(e),
                    )
                    raise

        logger.info("Connector published", record_id=record.id, checksum=archive.checksum)
        return PublishResult(
            id=record.id,
            version=record.version,
            checksum=archive.checksum,
            upload_url=record.upload_url,
        )
    finally:
        if owns_client:
            await client.close()
        clear_log_context()


async def _create_record(
    client: RegistryClient,
    manifest: ConnectorManifest,
    readme: str | None,
    options: PublishOptions,
) -> RegistryRecord:
    max_attempts = options.retry.max_attempts

    def on_retry(attempt: int, error: Exception, delay_ms: float) -> None:
        logger.warning(
            f"Retrying after {delay_ms / 1000:g}s (attempt {attempt}/{max_attempts})",
            reason=str(error),
            status_code=error.status_code if isinstance(error, NetworkError) else None,
        )

    return await with_retry(
        lambda: client.create_record(manifest, readme),
        options.retry,
        on_retry,
    )
