"""Release diff and news commands.

``appseal diff <old.json> <new.json>``
    List new releases and updates between two catalog documents.
``appseal news <old.json> <new.json>``
    Post news for those changes into the new catalog's feed.

Exit Codes:
    0 — Success.
    2 — A catalog document is unreadable, or a news template names an
        unknown placeholder.
"""

from __future__ import annotations

import dataclasses
import sys
from datetime import datetime
from pathlib import Path

import click

from appseal.cli.catalog_cmd import read_catalog
from appseal.cli.options import EXIT_OK, emit_json, fail, format_option, get_config
from appseal.core.news import (
    diff,
    import_version_dates,
    post_updates,
    stamp_version_dates,
)
from appseal.core.timestamps import parse_timestamp, utc_now
from appseal.exceptions import AppSealError


@click.command("diff")
@click.argument("old", type=click.Path(exists=True, dir_okay=False))
@click.argument("new", type=click.Path(exists=True, dir_okay=False))
@click.option("--skip-beta", is_flag=True, default=False, help="Ignore beta releases.")
@format_option
@click.pass_context
def diff_command(
    ctx: click.Context, old: str, new: str, skip_beta: bool, output_format: str
) -> None:
    """Show what changed between catalog documents OLD and NEW."""
    config = get_config(ctx, output_format)
    try:
        old_catalog = read_catalog(old)
        new_catalog = read_catalog(new)
    except AppSealError as exc:
        fail(exc, output_format)

    skip = skip_beta or config.news.skip_beta
    diffs = diff(old_catalog, new_catalog, skip_beta=skip)

    if output_format == "json":
        emit_json({"diffs": [d.to_dict() for d in diffs]})
    else:
        from appseal.cli.output import print_diffs
        print_diffs(diffs)
    sys.exit(EXIT_OK)


@click.command("news")
@click.argument("old", type=click.Path(exists=True, dir_okay=False))
@click.argument("new", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Where to write the updated catalog (default: overwrite NEW).",
)
@click.option(
    "--date",
    default=None,
    help="Publication date, YYYY-MM-DDTHH:MM:SSZ (default: now).",
)
@click.option("--limit", type=int, default=None, help="Keep at most this many news items.")
@click.option("--skip-beta", is_flag=True, default=False, help="Ignore beta releases.")
@format_option
@click.pass_context
def news_command(
    ctx: click.Context,
    old: str,
    new: str,
    output: str | None,
    date: str | None,
    limit: int | None,
    skip_beta: bool,
    output_format: str,
) -> None:
    """Post release news for changes from OLD to NEW.

    Version dates are carried over from OLD for unchanged apps and set to
    the publication date for changed ones. The news feed of NEW (or, when
    NEW has none yet, of OLD) is extended with one item per change; items
    already in the feed are left as they are.
    """
    config = get_config(ctx, output_format)
    try:
        old_catalog = read_catalog(old)
        new_catalog = read_catalog(new)
    except AppSealError as exc:
        fail(exc, output_format)

    try:
        published: datetime = parse_timestamp(date) if date else utc_now()
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="--date") from exc

    skip = skip_beta or config.news.skip_beta
    catalog = import_version_dates(new_catalog, old_catalog)
    if not catalog.news:
        catalog = dataclasses.replace(catalog, news=old_catalog.news)
    diffs = diff(old_catalog, catalog, skip_beta=skip)
    catalog = stamp_version_dates(catalog, diffs, published)

    try:
        catalog = post_updates(
            catalog,
            diffs,
            config.news.template(),
            date=published,
            limit=limit if limit is not None else config.news.limit,
        )
    except AppSealError as exc:
        fail(exc, output_format)

    target = Path(output or new)
    catalog.write(target)

    if output_format == "json":
        emit_json({
            "diffs": [d.to_dict() for d in diffs],
            "news": catalog.to_dict()["news"],
            "output": str(target),
        })
    else:
        from appseal.cli.output import print_diffs, print_news
        print_diffs(diffs)
        print_news(catalog.news)
        click.echo(f"\nCatalog written to: {target}")
    sys.exit(EXIT_OK)
