"""Artifact comparator --- the reproducible-build check.

Given an artifact built in a trusted environment and one built
independently, the comparator decides path by path whether the untrusted
build reproduces the trusted one:

1. One-sided paths come from the symmetric difference of the two path
   sets; they are never hashed or inspected further.
2. Every shared path is decided by content hash alone. A size difference
   does not short-circuit the decision, and a zero-length file only
   matches another zero-length file.

The comparator has no notion of keys or signing; it only classifies.
"""

from __future__ import annotations

import logging

from appseal.core.archive.models import Artifact
from appseal.core.cancellation import CancellationToken, check
from appseal.core.compare.models import ComparisonResult, HashPair
from appseal.exceptions import IdenticalArtifactsError

logger = logging.getLogger(__name__)


def _same_source(trusted: Artifact, untrusted: Artifact) -> bool:
    if trusted is untrusted:
        return True
    return bool(trusted.archive_hash) and trusted.archive_hash == untrusted.archive_hash


def compare(
    trusted: Artifact,
    untrusted: Artifact,
    *,
    cancel: CancellationToken | None = None,
) -> ComparisonResult:
    """Compare a trusted artifact with an untrusted one.

    Args:
        trusted: Artifact built in the trusted environment.
        untrusted: Artifact built independently.
        cancel: Optional token polled between shared paths.

    Returns:
        An immutable ``ComparisonResult``.

    Raises:
        IdenticalArtifactsError: If both arguments are the same object or
            were read from byte-identical archive bytes.
        ValueError: If the artifacts were hashed with different algorithms.
        Cancelled: If *cancel* is tripped.
    """
    if _same_source(trusted, untrusted):
        raise IdenticalArtifactsError(
            "trusted and untrusted artifacts come from the same source"
        )
    if trusted.algorithm != untrusted.algorithm:
        raise ValueError(
            f"Cannot compare {trusted.algorithm!r} hashes with "
            f"{untrusted.algorithm!r} hashes"
        )

    trusted_paths = trusted.paths
    untrusted_paths = untrusted.paths

    trusted_only = trusted_paths - untrusted_paths
    untrusted_only = untrusted_paths - trusted_paths

    matched: set[str] = set()
    mismatched: dict[str, HashPair] = {}
    for path in sorted(trusted_paths & untrusted_paths):
        check(cancel)
        left = trusted.entries[path]
        right = untrusted.entries[path]
        if left.content_hash == right.content_hash and (left.size == 0) == (right.size == 0):
            matched.add(path)
            continue
        logger.info(
            "Mismatched entry %s: %s (%d bytes) vs. %s (%d bytes)",
            path, left.content_hash, left.size, right.content_hash, right.size,
        )
        mismatched[path] = HashPair(trusted=left.content_hash, untrusted=right.content_hash)

    result = ComparisonResult(
        matched_paths=frozenset(matched),
        mismatched_paths=mismatched,
        trusted_only_paths=trusted_only,
        untrusted_only_paths=untrusted_only,
        verified_entries=tuple(untrusted.entries[path] for path in sorted(matched)),
        algorithm=trusted.algorithm,
    )
    logger.debug("Comparison summary: %s", result.summary())
    return result
