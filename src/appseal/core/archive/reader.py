"""Archive reader --- turn zip/ipa bytes into an ``Artifact``.

The reader walks every member of a zip archive in central-directory order,
normalizes its path, rejects anything that escapes the archive root, and
hashes the decompressed content. Directory members carry no content and are
skipped. Members matching the exclusion suffixes (code-signature material by
default) are dropped before hashing, because the trusted and untrusted builds
are expected to be signed with different certificates.

The result depends only on the input bytes: no filesystem access, no clock,
no platform-specific path handling.
"""

from __future__ import annotations

import hashlib
import io
import logging
import lzma
import posixpath
import re
import struct
import zipfile
import zlib
from typing import Iterable

from appseal.core.archive.models import (
    DIGEST_ALGORITHM,
    ArchiveEntry,
    Artifact,
    compute_digest,
)
from appseal.core.cancellation import CancellationToken, check
from appseal.exceptions import MalformedArchive

logger = logging.getLogger(__name__)

# Signature material lives in either ``_CodeSignature`` or ``Contents``.
DEFAULT_EXCLUDED_SUFFIXES: tuple[str, ...] = (
    "/CodeSignature",
    "/CodeResources",
    "/CodeDirectory",
    "/CodeRequirements-1",
)

_CHUNK_SIZE = 1 << 16
_COMPRESSION_METHODS = frozenset(
    {zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED, zipfile.ZIP_BZIP2, zipfile.ZIP_LZMA}
)
_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def normalize_entry_path(raw: str) -> str:
    """Normalize a zip member name to a root-relative POSIX path.

    Args:
        raw: The member name as stored in the archive.

    Returns:
        The normalized path, without leading ``./`` or trailing ``/``.

    Raises:
        MalformedArchive: If the path is absolute, carries a drive letter,
            contains a parent-directory segment, or is empty.
    """
    if "\x00" in raw:
        raise MalformedArchive("traversal", raw, "NUL byte in path")
    if "\\" in raw:
        # Zip names are "/"-separated; a backslash is either a Windows tool
        # bug or an attempt to smuggle a separator past the checks below.
        candidate = raw.replace("\\", "/")
    else:
        candidate = raw
    if candidate.startswith("/") or _DRIVE_RE.match(candidate):
        raise MalformedArchive("traversal", raw, "absolute path")
    if ".." in candidate.split("/"):
        raise MalformedArchive("traversal", raw, "parent-directory segment")
    normalized = posixpath.normpath(candidate)
    if normalized in ("", "."):
        raise MalformedArchive("traversal", raw, "empty path")
    return normalized


class ArchiveReader:
    """Reads archive bytes into immutable ``Artifact`` values.

    A reader holds only configuration, so one instance can be shared by
    every worker in a pool.

    Args:
        excluded_suffixes: Entry paths ending with any of these suffixes
            are left out of the artifact.

    Example::

        reader = ArchiveReader()
        artifact = reader.read(Path("App.ipa").read_bytes())
    """

    def __init__(
        self, excluded_suffixes: Iterable[str] = DEFAULT_EXCLUDED_SUFFIXES
    ) -> None:
        self.excluded_suffixes = tuple(excluded_suffixes)
        self.algorithm = DIGEST_ALGORITHM

    def is_excluded(self, path: str) -> bool:
        return any(path.endswith(suffix) for suffix in self.excluded_suffixes)

    def read(
        self, data: bytes, *, cancel: CancellationToken | None = None
    ) -> Artifact:
        """Parse *data* and hash every member.

        Args:
            data: Raw archive bytes (zip, ipa, or any zip-based package).
            cancel: Optional token polled between entries.

        Returns:
            A new ``Artifact``.

        Raises:
            MalformedArchive: On unparseable input, path traversal,
                duplicate normalized paths, or undecompressable entries.
            Cancelled: If *cancel* is tripped mid-read.
        """
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except (
            zipfile.BadZipFile,
            zipfile.LargeZipFile,
            NotImplementedError,
            struct.error,
            EOFError,
            ValueError,
            OSError,
        ) as exc:
            raise MalformedArchive("unreadable", detail=str(exc)) from exc

        entries: dict[str, ArchiveEntry] = {}
        seen: set[str] = set()
        with archive:
            for info in archive.infolist():
                check(cancel)
                if info.is_dir():
                    continue
                path = normalize_entry_path(info.filename)
                if path in seen:
                    raise MalformedArchive("duplicate", path)
                seen.add(path)
                if self.is_excluded(path):
                    logger.debug("Excluding signature entry: %s", path)
                    continue
                entries[path] = self._hash_member(archive, info, path)

        artifact = Artifact(
            entries=entries,
            algorithm=self.algorithm,
            archive_size=len(data),
            archive_hash=compute_digest(data),
        )
        logger.debug(
            "Read artifact %s: %d entries, %d bytes",
            artifact.archive_hash, len(artifact), artifact.archive_size,
        )
        return artifact

    @staticmethod
    def _hash_member(
        archive: zipfile.ZipFile, info: zipfile.ZipInfo, path: str
    ) -> ArchiveEntry:
        """Stream one member through the digest without holding it in memory."""
        if info.compress_type not in _COMPRESSION_METHODS:
            raise MalformedArchive(
                "corrupt-entry", path, f"unsupported compression method {info.compress_type}"
            )
        digest = hashlib.sha256()
        size = 0
        try:
            with archive.open(info) as stream:
                while True:
                    chunk = stream.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    digest.update(chunk)
                    size += len(chunk)
        except (
            zipfile.BadZipFile,
            zlib.error,
            lzma.LZMAError,
            NotImplementedError,
            RuntimeError,
            struct.error,
            EOFError,
            ValueError,
            OSError,
        ) as exc:
            raise MalformedArchive("corrupt-entry", path, str(exc)) from exc
        return ArchiveEntry(
            path=path,
            size=size,
            content_hash=f"{DIGEST_ALGORITHM}:{digest.hexdigest()}",
        )


def read_archive(
    data: bytes,
    *,
    excluded_suffixes: Iterable[str] = DEFAULT_EXCLUDED_SUFFIXES,
    cancel: CancellationToken | None = None,
) -> Artifact:
    """Read *data* with a one-off ``ArchiveReader``."""
    return ArchiveReader(excluded_suffixes).read(data, cancel=cancel)
