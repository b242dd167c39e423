"""Factories shared across appseal tests.

Archives are built in memory with ``zipfile``; artifacts can also be
built directly from ``{path: content}`` mappings when the archive layer is
not under test.
"""

from __future__ import annotations

import io
import zipfile
from datetime import datetime, timezone
from typing import Any

from appseal.core.archive import ArchiveEntry, Artifact, compute_digest
from appseal.core.catalog import CatalogEntry

FIXED_TIME = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
ZIP_TIME = (2024, 1, 1, 0, 0, 0)


def make_zip(
    files: dict[str, bytes],
    *,
    compression: int = zipfile.ZIP_DEFLATED,
    directories: tuple[str, ...] = (),
) -> bytes:
    """Build zip bytes holding *files* (and empty *directories*).

    Member timestamps are fixed, so equal inputs give equal bytes.
    """
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name in directories:
            zf.writestr(zipfile.ZipInfo(name, date_time=ZIP_TIME), b"")
        for name, content in files.items():
            info = zipfile.ZipInfo(name, date_time=ZIP_TIME)
            info.compress_type = compression
            zf.writestr(info, content)
    return buffer.getvalue()


def make_artifact(files: dict[str, bytes], *, archive_hash: str = "") -> Artifact:
    """Build an Artifact straight from contents, without an archive."""
    return Artifact.from_entries(
        [
            ArchiveEntry(path=path, size=len(content), content_hash=compute_digest(content))
            for path, content in files.items()
        ],
        archive_hash=archive_hash,
    )


def make_metadata(
    bundle_id: str = "app.Cloud-Cuckoo",
    version: str = "1.0.0",
    name: str = "Cloud Cuckoo",
    **extra: Any,
) -> dict[str, Any]:
    """A raw metadata record as a caller would supply it."""
    return {"bundleIdentifier": bundle_id, "name": name, "version": version, **extra}


def make_entry(
    bundle_id: str = "app.Cloud-Cuckoo",
    version: str = "1.0.0",
    name: str = "Cloud Cuckoo",
    **fields: Any,
) -> CatalogEntry:
    return CatalogEntry(bundle_identifier=bundle_id, name=name, version=version, **fields)


APP_FILES: dict[str, bytes] = {
    "Cloud Cuckoo.app/Contents/Info.plist": b"<plist>cloud cuckoo</plist>",
    "Cloud Cuckoo.app/Contents/MacOS/Cloud Cuckoo": b"\xcf\xfa\xed\xfe" + b"\x00" * 60,
    "Cloud Cuckoo.app/Contents/Resources/icon.icns": b"icns",
}

SIGNATURE_PATH = "Cloud Cuckoo.app/Contents/_CodeSignature/CodeResources"


def signed_zip(files: dict[str, bytes], signature: bytes) -> bytes:
    """Zip *files* plus a code-signature entry, as a signed build ships."""
    return make_zip({**files, SIGNATURE_PATH: signature})
