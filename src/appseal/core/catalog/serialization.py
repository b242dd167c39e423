"""Catalog document serialization.

The catalog document is what gets published and later diffed against the
next snapshot, so two snapshots built from the same data must be
byte-identical:

- camelCase keys, emitted with ``sort_keys=True``;
- apps ordered by bundle identifier, news newest first;
- every date in the one ``YYYY-MM-DDTHH:MM:SSZ`` format;
- optional fields omitted when unset rather than written as ``null``.

These functions are attached to ``Catalog`` in the package ``__init__``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Mapping

from appseal.core.catalog.metadata import FundingLink
from appseal.core.catalog.models import Catalog, CatalogEntry, NewsItem
from appseal.core.timestamps import format_timestamp, parse_timestamp

# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------


def entry_to_dict(entry: CatalogEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "bundleIdentifier": entry.bundle_identifier,
        "name": entry.name,
        "version": entry.version,
        "size": entry.size,
        "artifactHashes": dict(sorted(entry.artifact_hashes.items())),
        "entitlements": list(entry.entitlements),
        "fundingLinks": [link.to_dict() for link in entry.funding_links],
        "beta": entry.beta,
    }
    optional = {
        "sealReference": entry.seal_reference,
        "versionDate": (
            format_timestamp(entry.version_date) if entry.version_date else None
        ),
        "subtitle": entry.subtitle,
        "developerName": entry.developer_name,
        "coreSize": entry.core_size,
        "downloadURL": entry.download_url,
    }
    data.update({key: value for key, value in optional.items() if value is not None})
    if entry.extra:
        data["extra"] = dict(entry.extra)
    return data


def entry_from_dict(data: Mapping[str, Any]) -> CatalogEntry:
    """Rebuild a ``CatalogEntry`` from its document form.

    Raises:
        ValueError: If the entry is not an object, a required key is
            missing, or a value has the wrong type.
    """
    data = _mapping(data, "Catalog entry")
    try:
        version_date = data.get("versionDate")
        return CatalogEntry(
            bundle_identifier=_text(data, "bundleIdentifier"),
            name=_text(data, "name"),
            version=_text(data, "version"),
            size=int(data.get("size", 0)),
            artifact_hashes=dict(_mapping(data.get("artifactHashes", {}), "artifactHashes")),
            entitlements=tuple(_list(data, "entitlements")),
            funding_links=tuple(
                FundingLink(platform=link["platform"], url=link["url"])
                for link in _list(data, "fundingLinks")
            ),
            seal_reference=data.get("sealReference"),
            version_date=parse_timestamp(version_date) if version_date else None,
            subtitle=data.get("subtitle"),
            developer_name=data.get("developerName"),
            beta=bool(data.get("beta", False)),
            core_size=data.get("coreSize"),
            download_url=data.get("downloadURL"),
            extra=dict(_mapping(data.get("extra", {}), "extra")),
        )
    except KeyError as exc:
        raise ValueError(f"Catalog entry is missing {exc.args[0]!r}") from exc
    except TypeError as exc:
        raise ValueError(f"Catalog entry is malformed: {exc}") from exc


# ---------------------------------------------------------------------------
# News
# ---------------------------------------------------------------------------


def news_to_dict(item: NewsItem) -> dict[str, Any]:
    return {
        "identifier": item.identifier,
        "title": item.title,
        "caption": item.caption,
        "appID": item.app_id,
        "appVersion": item.app_version,
        "date": format_timestamp(item.date),
    }


def news_from_dict(data: Mapping[str, Any]) -> NewsItem:
    data = _mapping(data, "News item")
    try:
        return NewsItem(
            identifier=_text(data, "identifier"),
            title=data.get("title", ""),
            caption=data.get("caption", ""),
            app_id=data.get("appID", ""),
            app_version=data.get("appVersion", ""),
            date=parse_timestamp(data["date"]),
        )
    except KeyError as exc:
        raise ValueError(f"News item is missing {exc.args[0]!r}") from exc
    except TypeError as exc:
        raise ValueError(f"News item is malformed: {exc}") from exc


# ---------------------------------------------------------------------------
# Catalog (attached to the class)
# ---------------------------------------------------------------------------


def _to_dict(self: Catalog) -> dict[str, Any]:
    """Serialize the catalog to its document form."""
    data: dict[str, Any] = {
        "name": self.name,
        "identifier": self.identifier,
        "apps": [entry_to_dict(entry) for entry in self.apps],
        "news": [news_to_dict(item) for item in self.news],
    }
    if self.history:
        data["history"] = [entry_to_dict(entry) for entry in self.history]
    return data


def _to_json(self: Catalog, indent: int = 2) -> str:
    """Serialize to a deterministic JSON string (sorted keys, trailing newline)."""
    return json.dumps(self.to_dict(), indent=indent, sort_keys=True, ensure_ascii=False) + "\n"


def _write(self: Catalog, path: Path) -> None:
    """Write the catalog document to *path*, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(self.to_json(), encoding="utf-8")


def _from_dict(cls: type, data: Mapping[str, Any]) -> Any:
    """Deserialize a catalog document.

    Missing sections default to empty, so documents written before the
    news feed existed still load.

    Raises:
        ValueError: If the document is not an object, a section is not a
            list, or an app or news item is malformed.
    """
    data = _mapping(data, "Catalog document")
    name = data.get("name", "")
    identifier = data.get("identifier", "")
    if not isinstance(name, str) or not isinstance(identifier, str):
        raise ValueError("Catalog 'name' and 'identifier' must be strings")
    return cls(
        name=name,
        identifier=identifier,
        apps=tuple(entry_from_dict(app) for app in _list(data, "apps")),
        news=tuple(news_from_dict(item) for item in _list(data, "news")),
        history=tuple(entry_from_dict(app) for app in _list(data, "history")),
    )


def _from_json(cls: type, json_str: str) -> Any:
    """Deserialize from a JSON string.

    Raises:
        json.JSONDecodeError: If the string is not valid JSON.
    """
    return cls.from_dict(json.loads(json_str))


def _read(cls: type, path: Path) -> Any:
    """Read a catalog document from disk.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    return cls.from_json(path.read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be an object, got {type(value).__name__}")
    return value


def _list(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise ValueError(f"{key!r} must be a list, got {type(value).__name__}")
    return value


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data[key]
    if not isinstance(value, str):
        raise ValueError(f"{key!r} must be a string, got {type(value).__name__}")
    return value
