"""Catalog builder --- pure aggregation of verified artifacts into a Catalog.

The builder never fetches anything. Each ``BuildInput`` already carries
resolved artifact content, a raw metadata record, and optionally the seal
that vouches for the artifact.

Build proceeds in two passes:

1. **Ingest.** Every input is validated on its own: metadata goes through
   the ``AppMetadata`` schema, a supplied seal must cover the artifact, and
   (with ``require_seal``) unsealed inputs are refused. An input that fails
   becomes a ``BuildFailure`` and the build moves on.
2. **Reduce.** Surviving candidates are sorted by bundle identifier, then
   by ingestion index, and folded per identifier: the higher semantic
   version wins. Two candidates with the same version on different
   platforms merge their artifact hashes; on the same platform the first
   one is kept and a ``DuplicateVersionWarning`` is recorded.

Because reduction always walks the same order, the set of winning versions
does not depend on ingestion order, and for a given ingestion order the
emitted warnings are reproducible.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Sequence

from appseal.core.cancellation import CancellationToken, check
from appseal.core.catalog.metadata import AppMetadata
from appseal.core.catalog.models import (
    BuildFailure,
    BuildInput,
    BuildReport,
    Catalog,
    CatalogEntry,
    DuplicateVersionWarning,
)
from appseal.core.catalog.versions import SemanticVersion
from appseal.core.seal.models import manifest_digest
from appseal.exceptions import AppSealError, SealMismatch, SealMissing

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Candidate:
    index: int
    platform: str
    version: SemanticVersion
    entry: CatalogEntry


class CatalogBuilder:
    """Builds catalog snapshots from sealed artifacts and their metadata.

    Args:
        name: Catalog display name.
        identifier: Catalog identifier.
        strict_metadata: Reject unrecognized metadata keys instead of
            passing them through to ``CatalogEntry.extra``.
        require_seal: Refuse inputs that carry no seal.
        keep_history: Keep superseded entries in ``Catalog.history``.
    """

    def __init__(
        self,
        name: str = "",
        identifier: str = "",
        *,
        strict_metadata: bool = False,
        require_seal: bool = False,
        keep_history: bool = False,
    ) -> None:
        self.name = name
        self.identifier = identifier
        self.strict_metadata = strict_metadata
        self.require_seal = require_seal
        self.keep_history = keep_history

    def build(
        self,
        inputs: Sequence[BuildInput],
        *,
        cancel: CancellationToken | None = None,
    ) -> BuildReport:
        """Build a catalog from *inputs*.

        Returns:
            A ``BuildReport`` holding the new catalog (with an empty news
            feed), duplicate-version warnings, and per-input failures.

        Raises:
            Cancelled: If *cancel* is tripped; no partial catalog escapes.
        """
        candidates: list[_Candidate] = []
        failures: list[BuildFailure] = []

        for index, item in enumerate(inputs):
            check(cancel)
            try:
                candidates.append(self._ingest(index, item))
            except AppSealError as exc:
                bundle_id = _raw_identifier(item)
                logger.warning("Skipping input %d (%s): %s", index, bundle_id, exc)
                failures.append(
                    BuildFailure(index=index, error=exc, bundle_identifier=bundle_id)
                )

        candidates.sort(key=lambda c: (c.entry.bundle_identifier, c.index))

        winners: dict[str, _Candidate] = {}
        superseded: list[CatalogEntry] = []
        warnings: list[DuplicateVersionWarning] = []

        for candidate in candidates:
            check(cancel)
            bundle_id = candidate.entry.bundle_identifier
            current = winners.get(bundle_id)
            if current is None:
                winners[bundle_id] = candidate
            elif candidate.version > current.version:
                superseded.append(current.entry)
                winners[bundle_id] = candidate
            elif candidate.version < current.version:
                superseded.append(candidate.entry)
            elif candidate.platform not in current.entry.artifact_hashes:
                merged = dict(current.entry.artifact_hashes)
                merged.update(candidate.entry.artifact_hashes)
                winners[bundle_id] = dataclasses.replace(
                    current,
                    entry=dataclasses.replace(current.entry, artifact_hashes=merged),
                )
            else:
                logger.info(
                    "Duplicate version %s for %s: keeping input %d, dropping %d",
                    candidate.entry.version, bundle_id, current.index, candidate.index,
                )
                warnings.append(
                    DuplicateVersionWarning(
                        bundle_identifier=bundle_id,
                        version=candidate.entry.version,
                        kept_index=current.index,
                        dropped_index=candidate.index,
                    )
                )

        history: tuple[CatalogEntry, ...] = ()
        if self.keep_history:
            history = tuple(
                sorted(
                    superseded,
                    key=lambda e: (e.bundle_identifier, e.semantic_version),
                )
            )

        catalog = Catalog(
            name=self.name,
            identifier=self.identifier,
            apps=tuple(c.entry for c in winners.values()),
            history=history,
        )
        logger.info(
            "Built catalog with %d apps (%d warnings, %d failures)",
            len(catalog.apps), len(warnings), len(failures),
        )
        return BuildReport(
            catalog=catalog,
            warnings=tuple(warnings),
            failures=tuple(failures),
        )

    # -- Ingestion ----------------------------------------------------------

    def _ingest(self, index: int, item: BuildInput) -> _Candidate:
        metadata = AppMetadata.from_dict(item.metadata, strict=self.strict_metadata)
        artifact = item.artifact

        seal_reference: str | None = None
        if item.seal is not None:
            actual = manifest_digest(artifact)
            if item.seal.manifest_digest != actual:
                raise SealMismatch(expected=item.seal.manifest_digest, actual=actual)
            seal_reference = item.seal.manifest_digest
        elif self.require_seal:
            raise SealMissing(f"no seal supplied for {metadata.bundle_identifier}")

        download_hash = artifact.archive_hash or manifest_digest(artifact)
        size = metadata.size
        if size is None:
            size = artifact.archive_size or artifact.total_size

        entry = CatalogEntry(
            bundle_identifier=metadata.bundle_identifier,
            name=metadata.name,
            version=metadata.version,
            size=size,
            artifact_hashes={metadata.platform: download_hash},
            entitlements=tuple(metadata.entitlements),
            funding_links=tuple(metadata.funding_links),
            seal_reference=seal_reference,
            version_date=metadata.version_date,
            subtitle=metadata.subtitle,
            developer_name=metadata.developer_name,
            beta=metadata.beta,
            core_size=artifact.core_size,
            download_url=metadata.download_url,
            extra=dict(metadata.extra),
        )
        return _Candidate(
            index=index,
            platform=metadata.platform,
            version=metadata.semantic_version,
            entry=entry,
        )


def _raw_identifier(item: BuildInput) -> str | None:
    value = item.metadata.get("bundleIdentifier") if hasattr(item.metadata, "get") else None
    return value if isinstance(value, str) and value else None
