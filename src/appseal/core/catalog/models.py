"""Catalog data models.

A ``Catalog`` is the published directory of apps. It is rebuilt from
scratch on every run and never edited in place: a newer version of an app
*supersedes* its ``CatalogEntry`` by producing a new entry, and the news
feed grows by producing a new ``Catalog`` snapshot.

Serialization lives in ``serialization`` and is attached to ``Catalog`` in
the package ``__init__``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from appseal.core.archive.models import Artifact
from appseal.core.catalog.metadata import FundingLink
from appseal.core.catalog.versions import SemanticVersion
from appseal.core.seal.models import Seal
from appseal.exceptions import AppSealError


@dataclass(frozen=True)
class CatalogEntry:
    """One published app.

    Attributes:
        bundle_identifier: Unique key of the app within a catalog.
        name: Display name.
        version: Semantic version string.
        size: Download size of the published archive in bytes.
        artifact_hashes: Download hash of the archive, keyed by platform.
        entitlements: Entitlement identifiers (pass-through).
        funding_links: Funding sources (pass-through).
        seal_reference: Manifest digest of the seal vouching for this
            build, or None for unsealed entries.
        version_date: When this version was published.
        core_size: Size of the main executable, when it could be located.
        extra: Unrecognized metadata keys, passed through.
    """

    bundle_identifier: str
    name: str
    version: str
    size: int = 0
    artifact_hashes: Mapping[str, str] = field(default_factory=dict)
    entitlements: tuple[str, ...] = ()
    funding_links: tuple[FundingLink, ...] = ()
    seal_reference: str | None = None
    version_date: datetime | None = None
    subtitle: str | None = None
    developer_name: str | None = None
    beta: bool = False
    core_size: int | None = None
    download_url: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @property
    def semantic_version(self) -> SemanticVersion:
        return SemanticVersion.parse(self.version)

    @property
    def app_name_hyphenated(self) -> str:
        """Name with spaces replaced by hyphens (``"Cloud-Cuckoo"``)."""
        return self.name.replace(" ", "-")


@dataclass(frozen=True)
class NewsItem:
    """An entry in the catalog's release news feed.

    Once published an item is never rewritten; identifiers are derived from
    the release so the same transition always yields the same item id.
    """

    identifier: str
    title: str
    caption: str
    app_id: str
    app_version: str
    date: datetime


@dataclass(frozen=True)
class Catalog:
    """An immutable catalog snapshot.

    Attributes:
        name: Human-readable catalog name (e.g. ``"App Fair"``).
        identifier: Reverse-DNS catalog identifier.
        apps: Entries ordered by bundle identifier.
        news: News items, newest first.
        history: Superseded entries, when the builder keeps them.
    """

    name: str = ""
    identifier: str = ""
    apps: tuple[CatalogEntry, ...] = ()
    news: tuple[NewsItem, ...] = ()
    history: tuple[CatalogEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "apps", tuple(sorted(self.apps, key=lambda e: e.bundle_identifier))
        )
        object.__setattr__(self, "news", tuple(self.news))
        object.__setattr__(self, "history", tuple(self.history))

    def get(self, bundle_identifier: str) -> CatalogEntry | None:
        for entry in self.apps:
            if entry.bundle_identifier == bundle_identifier:
                return entry
        return None

    @property
    def bundle_identifiers(self) -> list[str]:
        return [entry.bundle_identifier for entry in self.apps]

    def __len__(self) -> int:
        return len(self.apps)


# ---------------------------------------------------------------------------
# Builder inputs and report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BuildInput:
    """One artifact to catalogue, with its raw metadata and optional seal."""

    artifact: Artifact
    metadata: Mapping[str, Any]
    seal: Seal | None = None


@dataclass(frozen=True)
class DuplicateVersionWarning:
    """Two inputs for one app and platform carried the same version.

    The first-ingested input (in the builder's stable order) is kept.
    This is a record, not an exception; builds never stop for it.
    """

    bundle_identifier: str
    version: str
    kept_index: int
    dropped_index: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "warning": "duplicate-version",
            "bundle_identifier": self.bundle_identifier,
            "version": self.version,
            "kept_index": self.kept_index,
            "dropped_index": self.dropped_index,
        }


@dataclass(frozen=True)
class BuildFailure:
    """An input that could not be catalogued, and why."""

    index: int
    error: AppSealError
    bundle_identifier: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "bundle_identifier": self.bundle_identifier,
            **self.error.to_dict(),
        }


@dataclass(frozen=True)
class BuildReport:
    """Everything a catalog build produced."""

    catalog: Catalog
    warnings: tuple[DuplicateVersionWarning, ...] = ()
    failures: tuple[BuildFailure, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures
