"""
Connector archiver.

Packs a connector directory into a zip archive while hashing every byte of
the compressed output stream, so the checksum describes exactly the file
that is uploaded.
"""

from __future__ import annotations

import fnmatch
import hashlib
import io
import os
import zipfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import BinaryIO

from contextmesh.errors import FileSystemError
from contextmesh.telemetry import get_logger

ARCHIVE_FILENAME = ".contextmesh-publish.zip"
ARCHIVE_MEDIA_TYPE = "application/zip"
COMPRESSION_LEVEL = 9

# Directory names excluded at any depth
EXCLUDED_DIRS: frozenset[str] = frozenset(
    {
        # Version control
        ".git",
        ".hg",
        ".svn",
        # Dependency installs
        "node_modules",
        ".venv",
        "venv",
        "__pycache__",
        # Build output
        "dist",
        "build",
    }
)

# File name patterns excluded at any depth
EXCLUDED_FILE_PATTERNS: tuple[str, ...] = (
    "*.log",
    ".DS_Store",
    "Thumbs.db",
    ".env*",
    "*.tmp",
    "*.temp",
    ARCHIVE_FILENAME,
)

logger = get_logger("contextmesh.archiver")


@dataclass
class ArchiveResult:
    """A packed connector archive.

    Attributes:
        path: Archive location on disk
        checksum: 'sha256:<hex>' digest of the archive bytes
        entries: Archive entry names (sorted relative paths)
    """

    path: Path
    checksum: str
    entries: list[str] = field(default_factory=list)

    @property
    def file_count(self) -> int:
        """Number of files in the archive."""
        return len(self.entries)


class HashingWriter(io.RawIOBase):
    """Write-only, non-seekable stream that hashes what it forwards.

    Being non-seekable makes zipfile stream entries with data descriptors
    instead of seeking back to patch headers, so every byte is written
    exactly once and in final order.
    """

    def __init__(self, raw: BinaryIO) -> None:
        super().__init__()
        self._raw = raw
        self._digest = hashlib.sha256()
        self._position = 0

    def writable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def write(self, data: bytes | bytearray | memoryview) -> int:  # type: ignore[override]
        view = memoryview(data)
        self._raw.write(view)
        self._digest.update(view)
        self._position += view.nbytes
        return view.nbytes

    def tell(self) -> int:
        return self._position

    def flush(self) -> None:
        if not self._raw.closed:
            self._raw.flush()

    @property
    def checksum(self) -> str:
        """'sha256:<hex>' of everything written so far."""
        return f"sha256:{self._digest.hexdigest()}"


def is_excluded(relative_path: str | PurePosixPath) -> bool:
    """Check whether a relative file path is excluded from the archive."""
    path = PurePosixPath(relative_path)
    if any(part in EXCLUDED_DIRS for part in path.parts[:-1]):
        return True
    return any(fnmatch.fnmatchcase(path.name, pattern) for pattern in EXCLUDED_FILE_PATTERNS)


def collect_files(directory: str | Path) -> list[str]:
    """List archive entries for a directory.

    Walks recursively, including hidden files, skipping excluded directories
    and file patterns.

    Returns:
        Sorted POSIX-style paths relative to ``directory``
    """
    root = Path(directory)
    files: list[str] = []
    for current, dirnames, filenames in os.walk(root):
        dirnames[:] = [d for d in dirnames if d not in EXCLUDED_DIRS]
        base = Path(current)
        for filename in filenames:
            full_path = base / filename
            if not full_path.is_file():
                continue
            relative = full_path.relative_to(root).as_posix()
            if not is_excluded(relative):
                files.append(relative)
    return sorted(files)


def pack_directory(
    directory: str | Path,
    output_path: str | Path | None = None,
) -> ArchiveResult:
    """Pack a connector directory into a zip archive.

    Args:
        directory: Connector directory
        output_path: Archive location (defaults to ARCHIVE_FILENAME inside
            ``directory``)

    Returns:
        ArchiveResult with path, checksum and entries

    Raises:
        FileSystemError: If the directory is missing or the archive cannot
            be written; a partially written archive is removed
    """
    root = Path(directory)
    if not root.is_dir():
        raise FileSystemError.directory_not_found(str(root))

    archive_path = Path(output_path) if output_path else root / ARCHIVE_FILENAME
    entries = collect_files(root)
    resolved_output = archive_path.resolve()
    entries = [name for name in entries if (root / name).resolve() != resolved_output]

    logger.debug("Packaging files", files=len(entries), archive=str(archive_path))

    try:
        with archive_path.open("wb") as raw:
            writer = HashingWriter(raw)
            with zipfile.ZipFile(
                writer,
                mode="w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=COMPRESSION_LEVEL,
                strict_timestamps=False,
            ) as archive:
                for name in entries:
                    archive.write(root / name, arcname=name)
            checksum = writer.checksum
    except (OSError, ValueError, zipfile.LargeZipFile) as e:
        remove_archive(archive_path)
        raise FileSystemError.cannot_create_archive(str(e), cause=e) from e

    logger.info("Archive created", files=len(entries), checksum=checksum)
    return ArchiveResult(path=archive_path, checksum=checksum, entries=entries)


def remove_archive(path: str | Path) -> None:
    """Delete an archive; failures are logged, never raised."""
    try:
        Path(path).unlink(missing_ok=True)
    except OSError as e:
        logger.warning("Failed to remove temporary archive", path=str(path), error=str(e))


@contextmanager
def temporary_archive(
    directory: str | Path,
    output_path: str | Path | None = None,
) -> Iterator[ArchiveResult]:
    """Pack ``directory`` and delete the archive when the block exits.

    The archive is removed on every exit path, including exceptions raised
    inside the block.

    Example:
        >>> with temporary_archive(path) as archive:
        ...     upload(archive.path, archive.checksum)
    """
    result = pack_directory(directory, output_path)
    try:
        yield result
    finally:
        remove_archive(result.path)
