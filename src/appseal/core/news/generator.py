"""Release news generation and feed merging.

``render_news`` turns release diffs into ``NewsItem``s. Item identifiers
are ``release-{bundleIdentifier}-{version}``, so running the same
transition twice yields the same identifier, and ``merge_news`` can drop
the repeat. Published items are never rewritten.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Iterable, Sequence

from appseal.core.catalog.models import Catalog, CatalogEntry, NewsItem
from appseal.core.news.differ import ReleaseDiff
from appseal.core.news.templates import NewsTemplate, release_variables, substitute
from appseal.core.timestamps import format_timestamp, utc_now

logger = logging.getLogger(__name__)


def release_identifier(entry: CatalogEntry) -> str:
    """News identifier for the release of *entry*'s current version."""
    return f"release-{entry.bundle_identifier}-{entry.version}"


def render_news(
    diffs: Sequence[ReleaseDiff],
    template: NewsTemplate | None = None,
    *,
    date: datetime | None = None,
) -> list[NewsItem]:
    """Render one news item per diff, in diff order.

    Args:
        diffs: Release transitions, typically from ``diff``.
        template: Title/caption templates; defaults to ``NewsTemplate()``.
        date: Publication date of every item; defaults to now.

    Raises:
        TemplateSubstitutionError: If a template names an unknown variable.
            Nothing is rendered in that case.
    """
    template = template or NewsTemplate()
    published = date or utc_now()
    items: list[NewsItem] = []
    for release in diffs:
        variables = release_variables(release)
        caption_template = template.caption_for(release)
        caption = (
            substitute(caption_template, variables)
            if caption_template is not None
            else release.new.subtitle or ""
        )
        items.append(
            NewsItem(
                identifier=release_identifier(release.new),
                title=substitute(template.title_for(release), variables),
                caption=caption,
                app_id=release.new.bundle_identifier,
                app_version=release.new.version,
                date=published,
            )
        )
    return items


def merge_news(
    feed: Iterable[NewsItem],
    items: Iterable[NewsItem],
    *,
    limit: int | None = None,
) -> tuple[NewsItem, ...]:
    """Merge freshly rendered *items* into a persisted *feed*.

    Items whose identifier is already in the feed are dropped; the feed's
    copy is kept untouched. Merging the same items twice is a no-op.

    Returns:
        The merged feed, newest first (on equal dates, new items before
        existing ones), truncated to *limit* items when given.
    """
    existing = list(feed)
    seen = {item.identifier for item in existing}
    fresh: list[NewsItem] = []
    for item in items:
        if item.identifier in seen:
            logger.debug("News item %s already published", item.identifier)
            continue
        seen.add(item.identifier)
        fresh.append(item)

    merged = sorted(fresh + existing, key=lambda i: format_timestamp(i.date), reverse=True)
    if limit is not None:
        merged = merged[: max(limit, 0)]
    return tuple(merged)


def post_updates(
    catalog: Catalog,
    diffs: Sequence[ReleaseDiff],
    template: NewsTemplate | None = None,
    *,
    date: datetime | None = None,
    limit: int | None = None,
) -> Catalog:
    """Return a new snapshot of *catalog* with news for *diffs* merged in."""
    items = render_news(diffs, template, date=date)
    news = merge_news(catalog.news, items, limit=limit)
    logger.info("Rendered %d news items (%d in feed)", len(items), len(news))
    return dataclasses.replace(catalog, news=news)
