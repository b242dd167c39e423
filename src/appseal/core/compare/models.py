"""Comparison result model.

A ``ComparisonResult`` partitions the union of two artifacts' paths into
four disjoint sets: matched, mismatched, trusted-only, and untrusted-only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from appseal.core.archive.models import DIGEST_ALGORITHM, ArchiveEntry


@dataclass(frozen=True)
class HashPair:
    """The two content hashes recorded for one mismatched path."""

    trusted: str
    untrusted: str

    def as_tuple(self) -> tuple[str, str]:
        return (self.trusted, self.untrusted)


@dataclass(frozen=True)
class ComparisonResult:
    """Outcome of comparing a trusted artifact with an untrusted one.

    Attributes:
        matched_paths: Paths present in both with equal content hashes.
        mismatched_paths: Paths present in both with differing hashes,
            mapped to their ``HashPair``.
        trusted_only_paths: Paths missing from the untrusted artifact.
        untrusted_only_paths: Paths missing from the trusted artifact.
        verified_entries: Entries for ``matched_paths``, sorted by path.
        algorithm: Digest algorithm shared by both artifacts.
    """

    matched_paths: frozenset[str] = frozenset()
    mismatched_paths: Mapping[str, HashPair] = field(default_factory=dict)
    trusted_only_paths: frozenset[str] = frozenset()
    untrusted_only_paths: frozenset[str] = frozenset()
    verified_entries: tuple[ArchiveEntry, ...] = ()
    algorithm: str = DIGEST_ALGORITHM

    def __post_init__(self) -> None:
        ordered = {p: self.mismatched_paths[p] for p in sorted(self.mismatched_paths)}
        object.__setattr__(self, "mismatched_paths", MappingProxyType(ordered))
        object.__setattr__(self, "matched_paths", frozenset(self.matched_paths))
        object.__setattr__(self, "trusted_only_paths", frozenset(self.trusted_only_paths))
        object.__setattr__(
            self, "untrusted_only_paths", frozenset(self.untrusted_only_paths)
        )

    @property
    def is_match(self) -> bool:
        """True when nothing differs and nothing is one-sided."""
        return not (
            self.mismatched_paths
            or self.trusted_only_paths
            or self.untrusted_only_paths
        )

    @property
    def all_paths(self) -> frozenset[str]:
        return (
            self.matched_paths
            | frozenset(self.mismatched_paths)
            | self.trusted_only_paths
            | self.untrusted_only_paths
        )

    def mismatch_tuples(self) -> dict[str, tuple[str, str]]:
        """Mismatches as ``path -> (trusted_hash, untrusted_hash)``."""
        return {path: pair.as_tuple() for path, pair in self.mismatched_paths.items()}

    def summary(self) -> dict[str, int]:
        return {
            "matched": len(self.matched_paths),
            "mismatched": len(self.mismatched_paths),
            "trusted_only": len(self.trusted_only_paths),
            "untrusted_only": len(self.untrusted_only_paths),
        }

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form, every collection sorted."""
        return {
            "algorithm": self.algorithm,
            "is_match": self.is_match,
            "matched": sorted(self.matched_paths),
            "mismatched": [
                {"path": path, "trusted": pair.trusted, "untrusted": pair.untrusted}
                for path, pair in self.mismatched_paths.items()
            ],
            "trusted_only": sorted(self.trusted_only_paths),
            "untrusted_only": sorted(self.untrusted_only_paths),
        }
