"""Catalog differ --- what changed between two published snapshots.

``diff`` walks the *new* catalog and reports every app that is either
absent from the old one (a new release) or present with a different
version (an update). Apps removed from the new catalog produce nothing.

The version-date helpers follow the same snapshot discipline: they never
touch their inputs and return new catalogs instead.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from appseal.core.catalog.models import Catalog, CatalogEntry
from appseal.core.timestamps import format_timestamp


@dataclass(frozen=True)
class ReleaseDiff:
    """One release transition: ``old`` is None for a brand-new app."""

    old: CatalogEntry | None
    new: CatalogEntry

    @property
    def is_new_release(self) -> bool:
        return self.old is None

    @property
    def is_update(self) -> bool:
        return self.old is not None

    @property
    def bundle_identifier(self) -> str:
        return self.new.bundle_identifier

    def to_dict(self) -> dict[str, str | None]:
        return {
            "bundle_identifier": self.new.bundle_identifier,
            "name": self.new.name,
            "old_version": self.old.version if self.old else None,
            "new_version": self.new.version,
            "version_date": (
                format_timestamp(self.new.version_date) if self.new.version_date else None
            ),
        }


def diff(old: Catalog, new: Catalog, *, skip_beta: bool = False) -> list[ReleaseDiff]:
    """Compute release transitions from *old* to *new*.

    Args:
        old: The previously published snapshot.
        new: The freshly built snapshot.
        skip_beta: Ignore beta entries in both snapshots, so a beta that
            becomes a release reads as a new release.

    Returns:
        Diffs ordered by the new entry's version date, most recent first;
        entries without a date come last; ties are broken by bundle
        identifier so the order is deterministic.
    """
    previous = {
        entry.bundle_identifier: entry
        for entry in old.apps
        if not (skip_beta and entry.beta)
    }
    diffs: list[ReleaseDiff] = []
    for entry in new.apps:
        if skip_beta and entry.beta:
            continue
        before = previous.get(entry.bundle_identifier)
        if before is not None and before.version == entry.version:
            continue
        diffs.append(ReleaseDiff(old=before, new=entry))
    return _order(diffs)


def _order(diffs: list[ReleaseDiff]) -> list[ReleaseDiff]:
    dated = [d for d in diffs if d.new.version_date is not None]
    undated = [d for d in diffs if d.new.version_date is None]
    # Canonical timestamp strings sort chronologically, naive or aware.
    dated.sort(key=lambda d: d.bundle_identifier)
    dated.sort(key=lambda d: format_timestamp(d.new.version_date), reverse=True)
    undated.sort(key=lambda d: d.bundle_identifier)
    return dated + undated


# ---------------------------------------------------------------------------
# Version dates
# ---------------------------------------------------------------------------


def import_version_dates(new: Catalog, old: Catalog) -> Catalog:
    """Carry version dates over from *old* for apps whose version is unchanged.

    A rebuilt catalog knows nothing about when a version was first
    published. Entries that already have a date keep it.
    """
    previous = {entry.bundle_identifier: entry for entry in old.apps}
    apps: list[CatalogEntry] = []
    for entry in new.apps:
        before = previous.get(entry.bundle_identifier)
        if (
            entry.version_date is None
            and before is not None
            and before.version == entry.version
            and before.version_date is not None
        ):
            entry = dataclasses.replace(entry, version_date=before.version_date)
        apps.append(entry)
    return dataclasses.replace(new, apps=tuple(apps))


def stamp_version_dates(
    catalog: Catalog, diffs: Sequence[ReleaseDiff], date: datetime
) -> Catalog:
    """Set the version date of every app named in *diffs* to *date*."""
    changed = {d.bundle_identifier for d in diffs}
    apps = tuple(
        dataclasses.replace(entry, version_date=date)
        if entry.bundle_identifier in changed
        else entry
        for entry in catalog.apps
    )
    return dataclasses.replace(catalog, apps=apps)
