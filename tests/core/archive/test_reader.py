"""Tests for the archive reader.

Validates entry hashing, path normalization and traversal rejection,
duplicate detection, signature-entry exclusion, corrupt-input handling,
determinism, and cancellation.
"""

from __future__ import annotations

import hashlib
import zipfile

import pytest

from appseal.core.archive import (
    DEFAULT_EXCLUDED_SUFFIXES,
    ArchiveReader,
    normalize_entry_path,
    read_archive,
)
from appseal.core.cancellation import CancellationToken
from appseal.exceptions import Cancelled, MalformedArchive
from tests.helpers import APP_FILES, SIGNATURE_PATH, make_zip


# ===========================================================================
# Hashing
# ===========================================================================


class TestEntryHashing:
    """Each member becomes an entry with its decompressed size and hash."""

    def test_entries_are_hashed_over_decompressed_bytes(self) -> None:
        content = b"A" * 10_000
        artifact = read_archive(make_zip({"bin/App": content}))
        entry = artifact.get("bin/App")
        assert entry is not None
        assert entry.size == 10_000
        assert entry.content_hash == "sha256:" + hashlib.sha256(content).hexdigest()

    def test_compression_does_not_change_hashes(self) -> None:
        stored = read_archive(make_zip(APP_FILES, compression=zipfile.ZIP_STORED))
        deflated = read_archive(make_zip(APP_FILES, compression=zipfile.ZIP_DEFLATED))
        assert stored.archive_hash != deflated.archive_hash
        assert [e.content_hash for e in stored] == [e.content_hash for e in deflated]

    def test_entries_iterate_in_path_order(self) -> None:
        artifact = read_archive(make_zip({"b": b"2", "a": b"1", "c/d": b"3"}))
        assert [e.path for e in artifact] == ["a", "b", "c/d"]

    def test_archive_hash_and_size_recorded(self) -> None:
        data = make_zip(APP_FILES)
        artifact = read_archive(data)
        assert artifact.archive_size == len(data)
        assert artifact.archive_hash == "sha256:" + hashlib.sha256(data).hexdigest()
        assert artifact.algorithm == "sha256"

    def test_zero_length_entry(self) -> None:
        artifact = read_archive(make_zip({"empty.txt": b""}))
        assert artifact.get("empty.txt").size == 0

    def test_directories_are_skipped(self) -> None:
        data = make_zip({"App.app/Info.plist": b"x"}, directories=("App.app/",))
        artifact = read_archive(data)
        assert artifact.paths == frozenset({"App.app/Info.plist"})

    def test_empty_archive(self) -> None:
        assert len(read_archive(make_zip({}))) == 0

    def test_same_bytes_same_artifact(self) -> None:
        data = make_zip(APP_FILES)
        assert read_archive(data) == read_archive(data)


# ===========================================================================
# Path normalization
# ===========================================================================


class TestNormalizeEntryPath:
    """Member names are normalized to root-relative POSIX paths."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("a/b.txt", "a/b.txt"),
            ("./a/b.txt", "a/b.txt"),
            ("a//b.txt", "a/b.txt"),
            ("a/./b.txt", "a/b.txt"),
            ("a\\b.txt", "a/b.txt"),
        ],
    )
    def test_normalizes(self, raw: str, expected: str) -> None:
        assert normalize_entry_path(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "/etc/passwd",
            "../outside",
            "a/../../outside",
            "a/../b",
            "C:/Windows/evil.dll",
            "..\\outside",
            "\\absolute",
            "bad\x00name",
            ".",
        ],
    )
    def test_rejects_escaping_paths(self, raw: str) -> None:
        with pytest.raises(MalformedArchive) as exc_info:
            normalize_entry_path(raw)
        assert exc_info.value.reason == "traversal"

    def test_traversal_member_fails_whole_archive(self) -> None:
        data = make_zip({"ok.txt": b"ok", "../escape.txt": b"evil"})
        with pytest.raises(MalformedArchive) as exc_info:
            read_archive(data)
        assert exc_info.value.reason == "traversal"
        assert exc_info.value.path == "../escape.txt"

    def test_absolute_member_fails(self) -> None:
        with pytest.raises(MalformedArchive):
            read_archive(make_zip({"/abs/path": b"x"}))


# ===========================================================================
# Duplicates
# ===========================================================================


class TestDuplicatePaths:
    """Two members that normalize to one path make the archive malformed."""

    def test_normalized_duplicates_rejected(self) -> None:
        data = make_zip({"a/b.txt": b"1", "a//b.txt": b"2"})
        with pytest.raises(MalformedArchive) as exc_info:
            read_archive(data)
        assert exc_info.value.reason == "duplicate"
        assert exc_info.value.path == "a/b.txt"

    def test_dot_prefixed_duplicate_rejected(self) -> None:
        data = make_zip({"Info.plist": b"1", "./Info.plist": b"2"})
        with pytest.raises(MalformedArchive, match="duplicate"):
            read_archive(data)

    def test_excluded_duplicates_rejected(self) -> None:
        """Signature entries are dropped, but still count toward duplicates."""
        data = make_zip({SIGNATURE_PATH: b"1", "./" + SIGNATURE_PATH: b"2"})
        with pytest.raises(MalformedArchive) as exc_info:
            read_archive(data)
        assert exc_info.value.reason == "duplicate"
        assert exc_info.value.path == SIGNATURE_PATH


# ===========================================================================
# Exclusion
# ===========================================================================


class TestSignatureExclusion:
    """Code-signature material is left out of the artifact by default."""

    def test_default_suffixes(self) -> None:
        assert "/CodeResources" in DEFAULT_EXCLUDED_SUFFIXES
        assert "/CodeSignature" in DEFAULT_EXCLUDED_SUFFIXES

    def test_signature_entries_excluded(self) -> None:
        files = {
            **APP_FILES,
            SIGNATURE_PATH: b"signature",
            "Payload/App.app/_CodeSignature/CodeDirectory": b"cd",
            "Payload/App.app/_CodeSignature/CodeRequirements-1": b"req",
        }
        artifact = read_archive(make_zip(files))
        assert artifact.paths == frozenset(APP_FILES)

    def test_custom_suffixes(self) -> None:
        reader = ArchiveReader(excluded_suffixes=[".DS_Store"])
        artifact = reader.read(make_zip({"a/.DS_Store": b"x", SIGNATURE_PATH: b"s"}))
        assert artifact.paths == frozenset({SIGNATURE_PATH})

    def test_no_exclusion(self) -> None:
        artifact = ArchiveReader(excluded_suffixes=()).read(
            make_zip({SIGNATURE_PATH: b"s"})
        )
        assert SIGNATURE_PATH in artifact.paths

    def test_is_excluded(self) -> None:
        reader = ArchiveReader()
        assert reader.is_excluded(SIGNATURE_PATH)
        assert not reader.is_excluded("App.app/Contents/Info.plist")


# ===========================================================================
# Malformed input
# ===========================================================================


class TestMalformedInput:
    """Unreadable archives and corrupt members raise MalformedArchive."""

    def test_not_a_zip(self) -> None:
        with pytest.raises(MalformedArchive) as exc_info:
            read_archive(b"definitely not a zip archive")
        assert exc_info.value.reason == "unreadable"

    def test_empty_bytes(self) -> None:
        with pytest.raises(MalformedArchive):
            read_archive(b"")

    def test_crc_mismatch(self) -> None:
        payload = b"original payload bytes for the crc check"
        data = make_zip({"bin/App": payload}, compression=zipfile.ZIP_STORED)
        corrupted = data.replace(payload, b"tampered" + payload[8:])
        with pytest.raises(MalformedArchive) as exc_info:
            read_archive(corrupted)
        assert exc_info.value.reason == "corrupt-entry"
        assert exc_info.value.path == "bin/App"

    def test_unsupported_zip_version(self) -> None:
        data = bytearray(make_zip(APP_FILES))
        central = data.index(b"PK\x01\x02")
        data[central + 6] = 192  # "version needed to extract": 19.2
        with pytest.raises(MalformedArchive) as exc_info:
            read_archive(bytes(data))
        assert exc_info.value.reason == "unreadable"

    def test_unseekable_member(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def negative_seek(*args: object, **kwargs: object) -> None:
            raise ValueError("negative seek value -22")

        data = make_zip({"bin/App": b"x"})
        monkeypatch.setattr(zipfile.ZipFile, "open", negative_seek)
        with pytest.raises(MalformedArchive) as exc_info:
            read_archive(data)
        assert exc_info.value.reason == "corrupt-entry"
        assert exc_info.value.path == "bin/App"

    def test_every_single_byte_corruption(self) -> None:
        data = make_zip(APP_FILES)
        for position in range(len(data)):
            corrupted = bytearray(data)
            corrupted[position] ^= 0xFF
            try:
                read_archive(bytes(corrupted))
            except MalformedArchive:
                pass

    def test_every_truncation(self) -> None:
        data = make_zip(APP_FILES)
        for length in range(len(data)):
            with pytest.raises(MalformedArchive):
                read_archive(data[:length])

    def test_error_is_structured(self) -> None:
        with pytest.raises(MalformedArchive) as exc_info:
            read_archive(make_zip({"../x": b""}))
        data = exc_info.value.to_dict()
        assert data["error"] == "malformed-archive"
        assert data["reason"] == "traversal"
        assert data["path"] == "../x"


# ===========================================================================
# Cancellation
# ===========================================================================


class TestCancellation:
    """A tripped token stops reading and no artifact is returned."""

    def test_cancelled_before_read(self) -> None:
        token = CancellationToken()
        token.cancel("stop")
        with pytest.raises(Cancelled, match="stop"):
            read_archive(make_zip(APP_FILES), cancel=token)

    def test_untripped_token_is_harmless(self) -> None:
        artifact = read_archive(make_zip(APP_FILES), cancel=CancellationToken())
        assert len(artifact) == len(APP_FILES)
