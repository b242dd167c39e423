"""Catalog differ and release news.

- ``differ``: ``ReleaseDiff``, ``diff``, and the version-date helpers.
- ``templates``: ``NewsTemplate`` and ``#(name)`` substitution.
- ``generator``: ``render_news``, ``merge_news``, ``post_updates``.
"""

from appseal.core.news.differ import (
    ReleaseDiff,
    diff,
    import_version_dates,
    stamp_version_dates,
)
from appseal.core.news.generator import (
    merge_news,
    post_updates,
    release_identifier,
    render_news,
)
from appseal.core.news.templates import (
    DEFAULT_TITLE,
    NewsTemplate,
    placeholders,
    release_variables,
    substitute,
)

__all__ = [
    "DEFAULT_TITLE",
    "NewsTemplate",
    "ReleaseDiff",
    "diff",
    "import_version_dates",
    "merge_news",
    "placeholders",
    "post_updates",
    "release_identifier",
    "release_variables",
    "render_news",
    "stamp_version_dates",
    "substitute",
]
