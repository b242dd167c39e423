"""App catalog --- model, metadata schema, builder, and document format.

The package is split into focused submodules:

- ``versions``: ``SemanticVersion`` and SemVer 2.0.0 precedence.
- ``metadata``: the ``AppMetadata`` schema applied at ingestion.
- ``models``: ``Catalog``, ``CatalogEntry``, ``NewsItem`` and the builder's
  input/report records.
- ``builder``: ``CatalogBuilder``.
- ``serialization``: the catalog document (``to_dict``, ``to_json``,
  ``from_dict``, ``from_json``, ``read``, ``write``).

Serialization is attached to ``Catalog`` here so callers see one API.
"""

from appseal.core.catalog.builder import CatalogBuilder
from appseal.core.catalog.metadata import DEFAULT_PLATFORM, AppMetadata, FundingLink
from appseal.core.catalog.models import (
    BuildFailure,
    BuildInput,
    BuildReport,
    Catalog,
    CatalogEntry,
    DuplicateVersionWarning,
    NewsItem,
)
from appseal.core.catalog.versions import (
    SemanticVersion,
    compare_versions,
    is_valid_version,
    parse_version,
)

# Attach the document format to Catalog
from appseal.core.catalog import serialization as _ser

Catalog.to_dict = _ser._to_dict
Catalog.to_json = _ser._to_json
Catalog.write = _ser._write
Catalog.from_dict = classmethod(_ser._from_dict)
Catalog.from_json = classmethod(_ser._from_json)
Catalog.read = classmethod(_ser._read)

__all__ = [
    "AppMetadata",
    "BuildFailure",
    "BuildInput",
    "BuildReport",
    "Catalog",
    "CatalogBuilder",
    "CatalogEntry",
    "DEFAULT_PLATFORM",
    "DuplicateVersionWarning",
    "FundingLink",
    "NewsItem",
    "SemanticVersion",
    "compare_versions",
    "is_valid_version",
    "parse_version",
]
