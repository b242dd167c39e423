"""Archive reading --- zip/ipa bytes to immutable, hashed Artifacts.

- ``models``: ``ArchiveEntry``, ``Artifact``, and digest helpers.
- ``reader``: ``ArchiveReader`` / ``read_archive`` with path normalization,
  traversal rejection, and signature-entry exclusion.
"""

from appseal.core.archive.models import (
    DIGEST_ALGORITHM,
    ArchiveEntry,
    Artifact,
    compute_digest,
    is_valid_digest,
)
from appseal.core.archive.reader import (
    DEFAULT_EXCLUDED_SUFFIXES,
    ArchiveReader,
    normalize_entry_path,
    read_archive,
)

__all__ = [
    "ArchiveEntry",
    "ArchiveReader",
    "Artifact",
    "DEFAULT_EXCLUDED_SUFFIXES",
    "DIGEST_ALGORITHM",
    "compute_digest",
    "is_valid_digest",
    "normalize_entry_path",
    "read_archive",
]
