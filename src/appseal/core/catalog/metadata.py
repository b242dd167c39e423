"""App metadata schema --- validated once at ingestion.

Callers hand the catalog builder a loosely typed metadata record (parsed
from ``App.yml``, an ``Info.plist`` extraction, or a JSON sidecar). This
module turns it into a typed ``AppMetadata`` in one pass, so nothing
downstream inspects raw dictionaries.

Each recognized key has a declared type. Unrecognized keys are tolerated
and carried through in ``AppMetadata.extra``, converted to plain JSON
values (YAML dates become timestamps); with ``strict=True`` they are
rejected instead.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Annotated, Any, Mapping

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
)

from appseal.core.catalog.versions import SemanticVersion
from appseal.core.timestamps import format_timestamp, parse_timestamp
from appseal.exceptions import InvalidMetadata, MissingIdentifier

DEFAULT_PLATFORM = "any"

NonNegativeInt = Annotated[StrictInt, Field(ge=0)]


@dataclass(frozen=True)
class FundingLink:
    """A funding source for an app (e.g. GitHub Sponsors, Patreon)."""

    platform: str
    url: str

    def to_dict(self) -> dict[str, str]:
        return {"platform": self.platform, "url": self.url}


class AppMetadata(BaseModel):
    """Typed, validated app metadata.

    Attributes:
        bundle_identifier: Unique app key (e.g. ``"app.Cloud-Cuckoo"``).
        name: Display name (e.g. ``"Cloud Cuckoo"``).
        version: Semantic version string as authored.
        platform: Platform the artifact was built for (``"macos"``,
            ``"ios"``, ...). Keys the per-platform artifact hashes.
        version_date: When this version was published, if known.
        entitlements: Entitlement identifiers, copied through verbatim.
        funding_links: Funding sources, copied through verbatim.
    """

    model_config = ConfigDict(frozen=True, extra="allow", str_strip_whitespace=True)

    bundle_identifier: StrictStr = Field(alias="bundleIdentifier")
    name: StrictStr
    version: StrictStr
    platform: StrictStr = DEFAULT_PLATFORM
    version_date: datetime | None = Field(default=None, alias="versionDate")
    subtitle: StrictStr | None = None
    developer_name: StrictStr | None = Field(default=None, alias="developerName")
    beta: StrictBool = False
    entitlements: tuple[StrictStr, ...] = ()
    funding_links: tuple[FundingLink, ...] = Field(default=(), alias="fundingLinks")
    download_url: StrictStr | None = Field(default=None, alias="downloadURL")
    size: NonNegativeInt | None = None

    @field_validator("version")
    @classmethod
    def check_semantic_version(cls, value: str) -> str:
        SemanticVersion.parse(value)
        return value

    @field_validator("version_date", mode="before")
    @classmethod
    def parse_version_date(cls, value: Any) -> datetime:
        if isinstance(value, (str, date)):
            return _to_datetime(value)
        raise ValueError(f"expected a timestamp, got {type(value).__name__}")

    @property
    def extra(self) -> dict[str, Any]:
        """Unrecognized metadata keys, sorted by key."""
        return dict(sorted((self.model_extra or {}).items()))

    @property
    def semantic_version(self) -> SemanticVersion:
        return SemanticVersion.parse(self.version)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, strict: bool = False) -> AppMetadata:
        """Validate a raw metadata record.

        Args:
            data: The raw record, keyed by the camelCase names above.
            strict: Reject unrecognized keys instead of passing them through.

        Raises:
            MissingIdentifier: If ``bundleIdentifier`` is absent or blank.
            InvalidMetadata: If a field has the wrong type, the version is
                not semantic, a passed-through value has no JSON form, or
                (strict) a key is unrecognized.
        """
        if not isinstance(data, Mapping):
            raise InvalidMetadata("<record>", f"expected a mapping, got {type(data).__name__}")

        identifier = data.get("bundleIdentifier")
        if identifier is None or (isinstance(identifier, str) and not identifier.strip()):
            raise MissingIdentifier()

        known = _aliases(cls)
        record: dict[str, Any] = {}
        for key, value in data.items():
            if not isinstance(key, str):
                raise InvalidMetadata(str(key), "metadata keys must be strings")
            if key in known:
                # An explicit null means "not given".
                if value is not None:
                    record[key] = value
            else:
                record[key] = value if strict else _json_value(key, value)

        model = StrictAppMetadata if strict else cls
        try:
            return model.model_validate(record)
        except ValidationError as exc:
            raise _invalid(exc) from exc


class StrictAppMetadata(AppMetadata):
    """``AppMetadata`` that rejects unrecognized keys."""

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _aliases(model: type[BaseModel]) -> set[str]:
    return {info.alias or name for name, info in model.model_fields.items()}


def _invalid(exc: ValidationError) -> InvalidMetadata:
    """Map the first validation error to ``InvalidMetadata``.

    Unrecognized keys are reported in sorted order, so the error does not
    depend on the record's key order.
    """
    errors = exc.errors()
    forbidden = sorted(str(e["loc"][0]) for e in errors if e["type"] == "extra_forbidden")
    if forbidden:
        return InvalidMetadata(forbidden[0], "unrecognized metadata key")
    error = errors[0]
    field = str(error["loc"][0]) if error["loc"] else "<record>"
    if error["type"] == "missing":
        return InvalidMetadata(field, "required field is missing")
    return InvalidMetadata(field, error["msg"])


def _to_datetime(value: str | date) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return parse_timestamp(value)


def _json_value(key: str, value: Any) -> Any:
    """Convert a passed-through value to a JSON-representable one.

    Raises:
        InvalidMetadata: If the value (or anything nested in it) has no
            JSON form.
    """
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidMetadata(key, f"{value!r} has no JSON form")
        return value
    if isinstance(value, date):
        return format_timestamp(_to_datetime(value))
    if isinstance(value, (list, tuple)):
        return [_json_value(key, item) for item in value]
    if isinstance(value, Mapping):
        converted: dict[str, Any] = {}
        for name, item in value.items():
            if not isinstance(name, str):
                raise InvalidMetadata(key, f"nested key {name!r} is not a string")
            converted[name] = _json_value(key, item)
        return converted
    raise InvalidMetadata(key, f"{type(value).__name__} values have no JSON form")
