"""Tests for ``appseal diff`` and ``appseal news``.

Verifies:
    - diff lists new releases and updates.
    - news posts one item per change into the catalog feed, stamps version
      dates, and adds nothing on a second run.
    - Unknown template placeholders exit 2 without writing.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from appseal.cli.main import cli
from appseal.core.catalog import Catalog
from tests.helpers import FIXED_TIME, make_entry

DATE = "2024-05-01T12:00:00Z"


@pytest.fixture
def catalogs(tmp_path: Path) -> tuple[Path, Path]:
    old = tmp_path / "published.json"
    new = tmp_path / "catalog.json"
    Catalog(apps=(
        make_entry(version="0.9.74"),
        make_entry("app.Unchanged", "1.0.0", "Unchanged", version_date=FIXED_TIME),
    )).write(old)
    Catalog(apps=(
        make_entry(version="0.9.75"),
        make_entry("app.Unchanged", "1.0.0", "Unchanged"),
        make_entry("app.Fresh", "0.1.0", "Fresh", beta=True),
    )).write(new)
    return old, new


class TestDiff:
    def test_lists_changes(self, runner: CliRunner, catalogs: tuple[Path, Path]) -> None:
        old, new = catalogs
        result = runner.invoke(cli, ["diff", str(old), str(new), "--format", "json"])
        assert result.exit_code == 0
        diffs = json.loads(result.output)["diffs"]
        assert sorted((d["bundle_identifier"], d["old_version"]) for d in diffs) == [
            ("app.Cloud-Cuckoo", "0.9.74"),
            ("app.Fresh", None),
        ]

    def test_skip_beta(self, runner: CliRunner, catalogs: tuple[Path, Path]) -> None:
        old, new = catalogs
        result = runner.invoke(
            cli, ["diff", str(old), str(new), "--skip-beta", "--format", "json"]
        )
        diffs = json.loads(result.output)["diffs"]
        assert [d["bundle_identifier"] for d in diffs] == ["app.Cloud-Cuckoo"]

    def test_no_changes_text(self, runner: CliRunner, catalogs: tuple[Path, Path]) -> None:
        old, _ = catalogs
        result = runner.invoke(cli, ["diff", str(old), str(old)])
        assert result.exit_code == 0
        assert "No release changes" in result.output

    def test_unreadable_catalog(self, runner: CliRunner, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("not json")
        result = runner.invoke(cli, ["diff", str(bad), str(bad)])
        assert result.exit_code == 2

    @pytest.mark.parametrize(
        "document", ["[]", '{"apps": "x"}', '{"news": [{"identifier": "x", "date": 5}]}']
    )
    def test_malformed_catalog(self, runner: CliRunner, tmp_path: Path, document: str) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text(document)
        result = runner.invoke(cli, ["diff", str(bad), str(bad), "--format", "json"])
        assert result.exit_code == 2
        assert json.loads(result.output)["error"] == "fetch"


class TestNews:
    def test_posts_news(self, runner: CliRunner, catalogs: tuple[Path, Path]) -> None:
        old, new = catalogs
        result = runner.invoke(cli, ["news", str(old), str(new), "--date", DATE])
        assert result.exit_code == 0, result.output
        catalog = Catalog.read(new)
        identifiers = {item.identifier for item in catalog.news}
        assert identifiers == {"release-app.Cloud-Cuckoo-0.9.75", "release-app.Fresh-0.1.0"}
        assert catalog.get("app.Cloud-Cuckoo").version_date == FIXED_TIME
        assert catalog.get("app.Unchanged").version_date == FIXED_TIME

    def test_second_run_adds_nothing(self, runner: CliRunner, catalogs: tuple[Path, Path]) -> None:
        old, new = catalogs
        runner.invoke(cli, ["news", str(old), str(new), "--date", DATE])
        first = Catalog.read(new).news
        runner.invoke(cli, ["news", str(old), str(new), "--date", "2024-06-01T00:00:00Z"])
        assert Catalog.read(new).news == first

    def test_output_path_and_template(
        self, runner: CliRunner, catalogs: tuple[Path, Path], tmp_path: Path
    ) -> None:
        Path("appseal.yaml").write_text(
            "news:\n"
            "  title_update: \"#(appname) #(oldappversion) -> #(appversion)\"\n"
            "  skip_beta: true\n"
        )
        old, new = catalogs
        out = tmp_path / "out.json"
        result = runner.invoke(
            cli, ["news", str(old), str(new), "-o", str(out), "--date", DATE, "--format", "json"]
        )
        assert result.exit_code == 0, result.output
        [item] = json.loads(result.output)["news"]
        assert item["title"] == "Cloud Cuckoo 0.9.74 -> 0.9.75"
        assert Catalog.read(new).news == ()
        assert len(Catalog.read(out).news) == 1

    def test_limit(self, runner: CliRunner, catalogs: tuple[Path, Path]) -> None:
        old, new = catalogs
        result = runner.invoke(cli, ["news", str(old), str(new), "--limit", "1", "--date", DATE])
        assert result.exit_code == 0
        assert len(Catalog.read(new).news) == 1

    def test_unknown_placeholder(self, runner: CliRunner, catalogs: tuple[Path, Path]) -> None:
        Path("appseal.yaml").write_text('news:\n  title: "#(appname) #(nonsense)"\n')
        old, new = catalogs
        before = new.read_text()
        result = runner.invoke(cli, ["news", str(old), str(new), "--format", "json"])
        assert result.exit_code == 2
        assert json.loads(result.output)["placeholders"] == ["nonsense"]
        assert new.read_text() == before

    def test_bad_date(self, runner: CliRunner, catalogs: tuple[Path, Path]) -> None:
        old, new = catalogs
        result = runner.invoke(cli, ["news", str(old), str(new), "--date", "someday"])
        assert result.exit_code == 2
