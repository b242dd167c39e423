"""Archive data models --- ArchiveEntry and Artifact.

An ``Artifact`` is the content-level view of a built app package: the set
of files inside the archive, each with its decompressed size and a content
hash. Artifacts are immutable once constructed and are compared, sealed,
and catalogued without ever touching the archive bytes again.

Content hashes use the SRI-style ``"<algorithm>:<hex>"`` form, and the
algorithm identifier is recorded on the artifact itself so that seals made
with a retired algorithm can be recognized and invalidated later.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping

# ---------------------------------------------------------------------------
# Digest algorithm
# ---------------------------------------------------------------------------

DIGEST_ALGORITHM: str = "sha256"

_HASH_RE = re.compile(r"^sha256:[0-9a-f]{64}$")


def compute_digest(content: bytes) -> str:
    """Compute the content hash of *content* in ``"sha256:<hex>"`` form."""
    return f"{DIGEST_ALGORITHM}:{hashlib.sha256(content).hexdigest()}"


def is_valid_digest(value: str) -> bool:
    """Return True if *value* is a well-formed ``sha256:<64 hex>`` hash."""
    return bool(_HASH_RE.match(value))


# ---------------------------------------------------------------------------
# ArchiveEntry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArchiveEntry:
    """A single file inside an archive.

    Attributes:
        path: Normalized, archive-root-relative POSIX path
            (e.g. ``"Payload/Cloud Cuckoo.app/Info.plist"``).
        size: Decompressed size in bytes.
        content_hash: Digest of the decompressed bytes, ``"sha256:<hex>"``.
    """

    path: str
    size: int
    content_hash: str


# ---------------------------------------------------------------------------
# Artifact
# ---------------------------------------------------------------------------

_APP_SUFFIX = ".app"


@dataclass(frozen=True)
class Artifact:
    """An ordered, path-keyed, read-only set of archive entries.

    Attributes:
        entries: Mapping of path to ``ArchiveEntry``, iterated in path order.
        algorithm: Digest algorithm used for every ``content_hash``.
        archive_size: Size of the raw archive bytes (the download size).
        archive_hash: Digest of the raw archive bytes (the download hash).
    """

    entries: Mapping[str, ArchiveEntry] = field(default_factory=dict)
    algorithm: str = DIGEST_ALGORITHM
    archive_size: int = 0
    archive_hash: str = ""

    def __post_init__(self) -> None:
        ordered = {path: self.entries[path] for path in sorted(self.entries)}
        for path, entry in ordered.items():
            if entry.path != path:
                raise ValueError(f"Entry keyed as {path!r} has path {entry.path!r}")
        object.__setattr__(self, "entries", MappingProxyType(ordered))

    @classmethod
    def from_entries(
        cls,
        entries: list[ArchiveEntry] | tuple[ArchiveEntry, ...],
        *,
        algorithm: str = DIGEST_ALGORITHM,
        archive_size: int = 0,
        archive_hash: str = "",
    ) -> Artifact:
        """Build an artifact from a flat entry list.

        Raises:
            ValueError: If two entries share a path.
        """
        keyed: dict[str, ArchiveEntry] = {}
        for entry in entries:
            if entry.path in keyed:
                raise ValueError(f"Duplicate entry path: {entry.path!r}")
            keyed[entry.path] = entry
        return cls(
            entries=keyed,
            algorithm=algorithm,
            archive_size=archive_size,
            archive_hash=archive_hash,
        )

    # -- Queries ------------------------------------------------------------

    @property
    def paths(self) -> frozenset[str]:
        return frozenset(self.entries)

    def get(self, path: str) -> ArchiveEntry | None:
        return self.entries.get(path)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ArchiveEntry]:
        return iter(self.entries.values())

    @property
    def total_size(self) -> int:
        """Sum of decompressed entry sizes."""
        return sum(entry.size for entry in self.entries.values())

    @property
    def app_name(self) -> str | None:
        """Name of the single ``.app`` bundle at the archive root, if any.

        iOS ``.ipa`` archives nest the bundle under ``Payload/``; macOS zips
        place it at the root.
        """
        roots: set[str] = set()
        for path in self.entries:
            parts = path.split("/")
            while parts and parts[0] == "Payload":
                parts = parts[1:]
            if parts:
                roots.add(parts[0])
        if len(roots) != 1:
            return None
        root = roots.pop()
        if not root.endswith(_APP_SUFFIX) or root == _APP_SUFFIX:
            return None
        return root[: -len(_APP_SUFFIX)]

    @property
    def core_size(self) -> int | None:
        """Size of the main executable, or None when it cannot be located.

        macOS: ``Name.app/Contents/MacOS/Name``; iOS: ``Payload/Name.app/Name``.
        """
        name = self.app_name
        if name is None:
            return None
        for candidate in (
            f"{name}.app/Contents/MacOS/{name}",
            f"Payload/{name}.app/{name}",
        ):
            entry = self.entries.get(candidate)
            if entry is not None:
                return entry.size
        return None
