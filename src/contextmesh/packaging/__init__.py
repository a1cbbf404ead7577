"""
Packaging - deterministic connector archives with streaming checksums.
"""

from contextmesh.packaging.archiver import (
    ARCHIVE_FILENAME,
    ARCHIVE_MEDIA_TYPE,
    EXCLUDED_DIRS,
    EXCLUDED_FILE_PATTERNS,
    ArchiveResult,
    HashingWriter,
    collect_files,
    is_excluded,
    pack_directory,
    remove_archive,
    temporary_archive,
)

__all__ = [
    "ARCHIVE_FILENAME",
    "ARCHIVE_MEDIA_TYPE",
    "EXCLUDED_DIRS",
    "EXCLUDED_FILE_PATTERNS",
    "ArchiveResult",
    "HashingWriter",
    "collect_files",
    "is_excluded",
    "pack_directory",
    "remove_archive",
    "temporary_archive",
]
