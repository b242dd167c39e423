"""Tests for the catalog differ and the version-date helpers."""

from __future__ import annotations

from datetime import timedelta

from appseal.core.catalog import Catalog
from appseal.core.news import ReleaseDiff, diff, import_version_dates, stamp_version_dates
from tests.helpers import FIXED_TIME, make_entry


class TestDiff:
    def test_same_catalog_has_no_diffs(self) -> None:
        catalog = Catalog(apps=(make_entry(), make_entry("app.Other", "2.0.0", "Other")))
        assert diff(catalog, catalog) == []

    def test_new_release(self) -> None:
        new = Catalog(apps=(make_entry(),))
        [release] = diff(Catalog(), new)
        assert release.is_new_release
        assert release.old is None
        assert release.new == make_entry()

    def test_update(self) -> None:
        old = Catalog(apps=(make_entry(version="0.9.74"),))
        new = Catalog(apps=(make_entry(version="0.9.75"),))
        [release] = diff(old, new)
        assert release.is_update
        assert release.old.version == "0.9.74"
        assert release.new.version == "0.9.75"

    def test_removed_apps_ignored(self) -> None:
        old = Catalog(apps=(make_entry(), make_entry("app.Gone")))
        new = Catalog(apps=(make_entry(),))
        assert diff(old, new) == []

    def test_version_string_change_counts(self) -> None:
        old = Catalog(apps=(make_entry(version="1.0.0+a"),))
        new = Catalog(apps=(make_entry(version="1.0.0+b"),))
        assert len(diff(old, new)) == 1

    def test_skip_beta(self) -> None:
        new = Catalog(apps=(make_entry(beta=True), make_entry("app.Stable")))
        assert [d.bundle_identifier for d in diff(Catalog(), new, skip_beta=True)] == ["app.Stable"]
        assert len(diff(Catalog(), new)) == 2

    def test_skip_beta_ignores_old_betas(self) -> None:
        old = Catalog(apps=(make_entry(version="1.0.0", beta=True),))
        new = Catalog(apps=(make_entry(version="1.0.0"),))
        assert diff(old, new) == []
        releases = diff(old, new, skip_beta=True)
        assert len(releases) == 1
        assert releases[0].is_new_release

    def test_ordering(self) -> None:
        later = FIXED_TIME + timedelta(days=1)
        new = Catalog(apps=(
            make_entry("app.A"),
            make_entry("app.B", version_date=FIXED_TIME),
            make_entry("app.C", version_date=later),
            make_entry("app.D", version_date=FIXED_TIME),
            make_entry("app.E"),
        ))
        assert [d.bundle_identifier for d in diff(Catalog(), new)] == [
            "app.C", "app.B", "app.D", "app.A", "app.E",
        ]

    def test_to_dict(self) -> None:
        release = ReleaseDiff(old=make_entry(version="0.9.74"), new=make_entry(version="0.9.75"))
        assert release.to_dict() == {
            "bundle_identifier": "app.Cloud-Cuckoo",
            "name": "Cloud Cuckoo",
            "old_version": "0.9.74",
            "new_version": "0.9.75",
            "version_date": None,
        }


class TestVersionDates:
    def test_import_for_unchanged_version(self) -> None:
        old = Catalog(apps=(make_entry(version_date=FIXED_TIME),))
        new = Catalog(apps=(make_entry(),))
        assert import_version_dates(new, old).apps[0].version_date == FIXED_TIME
        assert new.apps[0].version_date is None

    def test_no_import_for_new_version(self) -> None:
        old = Catalog(apps=(make_entry(version_date=FIXED_TIME),))
        new = Catalog(apps=(make_entry(version="2.0.0"),))
        assert import_version_dates(new, old).apps[0].version_date is None

    def test_existing_date_kept(self) -> None:
        later = FIXED_TIME + timedelta(hours=1)
        old = Catalog(apps=(make_entry(version_date=FIXED_TIME),))
        new = Catalog(apps=(make_entry(version_date=later),))
        assert import_version_dates(new, old).apps[0].version_date == later

    def test_stamp(self) -> None:
        catalog = Catalog(apps=(make_entry(), make_entry("app.Other")))
        releases = diff(Catalog(apps=(make_entry("app.Other"),)), catalog)
        stamped = stamp_version_dates(catalog, releases, FIXED_TIME)
        assert stamped.get("app.Cloud-Cuckoo").version_date == FIXED_TIME
        assert stamped.get("app.Other").version_date is None
        assert catalog.get("app.Cloud-Cuckoo").version_date is None
