"""Shared fixtures for CLI tests.

Every CLI test runs in an empty working directory with an empty home, so
no stray ``appseal.yaml`` is picked up, and with an HMAC seal key in the
environment.
"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

from tests.helpers import APP_FILES, make_zip, signed_zip

SEAL_KEY = "cli-test-seal-key"


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("APPSEAL_HMAC_KEY", SEAL_KEY)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click CliRunner for invoking commands."""
    return CliRunner()


@pytest.fixture
def matching_pair(tmp_path: Path) -> tuple[Path, Path]:
    """Two differently signed builds with identical content."""
    trusted = tmp_path / "trusted.zip"
    untrusted = tmp_path / "untrusted.zip"
    trusted.write_bytes(signed_zip(APP_FILES, b"trusted-signature"))
    untrusted.write_bytes(signed_zip(APP_FILES, b"untrusted-signature"))
    return trusted, untrusted


@pytest.fixture
def mismatching_pair(tmp_path: Path) -> tuple[Path, Path]:
    """A rebuild whose main executable differs from the trusted build."""
    changed = dict(APP_FILES)
    changed["Cloud Cuckoo.app/Contents/MacOS/Cloud Cuckoo"] = b"\xcf\xfa\xed\xfe tampered"
    trusted = tmp_path / "reference.zip"
    untrusted = tmp_path / "rebuild.zip"
    trusted.write_bytes(make_zip(APP_FILES))
    untrusted.write_bytes(make_zip(changed))
    return trusted, untrusted
