"""Tests for ``appseal catalog``.

Verifies:
    - A manifest of sealed artifacts builds a catalog document.
    - Inputs that fail to load or validate are reported (exit 1) without
      stopping the build.
    - ``--previous`` carries version dates and the news feed forward.
"""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from appseal.cli.main import cli
from appseal.core.catalog import Catalog, NewsItem
from tests.helpers import APP_FILES, FIXED_TIME, make_entry, make_zip


def _manifest(tmp_path: Path, inputs: list[dict]) -> Path:
    path = tmp_path / "catalog-manifest.yaml"
    path.write_text(yaml.safe_dump({"inputs": inputs}))
    return path


def _cuckoo(version: str = "0.9.75", **extra: object) -> dict:
    return {
        "artifact": "Cloud-Cuckoo-macOS.zip",
        "metadata": {
            "bundleIdentifier": "app.Cloud-Cuckoo",
            "name": "Cloud Cuckoo",
            "version": version,
            "platform": "macos",
        },
        **extra,
    }


class TestCatalogBuild:
    def test_builds_document(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "Cloud-Cuckoo-macOS.zip").write_bytes(make_zip(APP_FILES))
        manifest = _manifest(tmp_path, [_cuckoo()])
        out = tmp_path / "public" / "catalog.json"
        result = runner.invoke(cli, ["catalog", str(manifest), "-o", str(out)])
        assert result.exit_code == 0, result.output
        catalog = Catalog.read(out)
        entry = catalog.get("app.Cloud-Cuckoo")
        assert entry.version == "0.9.75"
        assert set(entry.artifact_hashes) == {"macos"}
        assert entry.core_size == len(APP_FILES["Cloud Cuckoo.app/Contents/MacOS/Cloud Cuckoo"])

    def test_yaml_dated_metadata(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "Cloud-Cuckoo-macOS.zip").write_bytes(make_zip(APP_FILES))
        manifest = tmp_path / "catalog-manifest.yaml"
        manifest.write_text(
            "inputs:\n"
            "  - artifact: Cloud-Cuckoo-macOS.zip\n"
            "    metadata:\n"
            "      bundleIdentifier: app.Cloud-Cuckoo\n"
            "      name: Cloud Cuckoo\n"
            "      version: 0.9.75\n"
            "      versionDate: 2024-01-01\n"
            "      released: 2024-01-01\n"
        )
        out = tmp_path / "catalog.json"
        result = runner.invoke(cli, ["catalog", str(manifest), "-o", str(out)])
        assert result.exit_code == 0, result.output
        entry = Catalog.read(out).get("app.Cloud-Cuckoo")
        assert entry.extra == {"released": "2024-01-01T00:00:00Z"}
        assert entry.version_date.year == 2024

    def test_sealed_input(
        self, runner: CliRunner, tmp_path: Path, matching_pair: tuple[Path, Path]
    ) -> None:
        trusted, untrusted = matching_pair
        seal_path = tmp_path / "cuckoo.seal.json"
        sealed = runner.invoke(cli, ["seal", str(trusted), str(untrusted), "-o", str(seal_path)])
        assert sealed.exit_code == 0
        Path("appseal.yaml").write_text("catalog:\n  name: App Fair\n  require_seal: true\n")
        manifest = _manifest(tmp_path, [
            {**_cuckoo(), "artifact": untrusted.name, "seal": seal_path.name},
        ])
        result = runner.invoke(cli, ["catalog", str(manifest), "--format", "json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["catalog"]["name"] == "App Fair"
        [app] = data["catalog"]["apps"]
        assert app["sealReference"].startswith("sha256:")

    def test_metadata_file(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "app.zip").write_bytes(make_zip(APP_FILES))
        (tmp_path / "App.yml").write_text(
            "bundleIdentifier: app.Cloud-Cuckoo\nname: Cloud Cuckoo\nversion: 1.0.0\n"
        )
        manifest = _manifest(tmp_path, [{"artifact": "app.zip", "metadata_file": "App.yml"}])
        result = runner.invoke(cli, ["catalog", str(manifest), "--format", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["catalog"]["apps"][0]["version"] == "1.0.0"

    def test_failed_inputs_reported(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "Cloud-Cuckoo-macOS.zip").write_bytes(make_zip(APP_FILES))
        manifest = _manifest(tmp_path, [
            {"artifact": "missing.zip", "metadata": {"bundleIdentifier": "app.Missing"}},
            _cuckoo(),
            {**_cuckoo(), "metadata": {"name": "No Identifier", "version": "1.0.0"}},
        ])
        result = runner.invoke(cli, ["catalog", str(manifest), "--format", "json"])
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert [a["bundleIdentifier"] for a in data["catalog"]["apps"]] == ["app.Cloud-Cuckoo"]
        failures = data["failures"]
        assert [f["index"] for f in failures] == [0, 2]
        assert failures[0]["error"] == "fetch"
        assert failures[0]["bundle_identifier"] == "app.Missing"
        assert failures[1]["error"] == "missing-identifier"

    def test_duplicate_warning_indexes_manifest(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "Cloud-Cuckoo-macOS.zip").write_bytes(make_zip(APP_FILES))
        manifest = _manifest(tmp_path, [
            {"artifact": "missing.zip", "metadata": {}},
            _cuckoo(),
            _cuckoo(),
        ])
        result = runner.invoke(cli, ["catalog", str(manifest), "--format", "json"])
        [warning] = json.loads(result.output)["warnings"]
        assert (warning["kept_index"], warning["dropped_index"]) == (1, 2)

    def test_text_output(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "Cloud-Cuckoo-macOS.zip").write_bytes(make_zip(APP_FILES))
        result = runner.invoke(cli, ["catalog", str(_manifest(tmp_path, [_cuckoo()]))])
        assert result.exit_code == 0
        assert "1 apps" in result.output

    def test_bad_manifest(self, runner: CliRunner, tmp_path: Path) -> None:
        manifest = tmp_path / "catalog-manifest.yaml"
        manifest.write_text("apps: []\n")
        result = runner.invoke(cli, ["catalog", str(manifest)])
        assert result.exit_code == 2


class TestPrevious:
    def test_dates_and_news_carried(self, runner: CliRunner, tmp_path: Path) -> None:
        (tmp_path / "Cloud-Cuckoo-macOS.zip").write_bytes(make_zip(APP_FILES))
        item = NewsItem(
            "release-app.Cloud-Cuckoo-0.9.75", "New Release", "", "app.Cloud-Cuckoo",
            "0.9.75", FIXED_TIME,
        )
        previous = tmp_path / "published.json"
        Catalog(
            apps=(make_entry(version="0.9.75", version_date=FIXED_TIME),),
            news=(item,),
        ).write(previous)
        out = tmp_path / "catalog.json"
        result = runner.invoke(cli, [
            "catalog", str(_manifest(tmp_path, [_cuckoo()])),
            "--previous", str(previous), "-o", str(out),
        ])
        assert result.exit_code == 0
        catalog = Catalog.read(out)
        assert catalog.apps[0].version_date == FIXED_TIME
        assert catalog.news == (item,)
