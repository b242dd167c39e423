"""appseal CLI — Reproducible-build verification and app catalog publishing.

Entry point for the ``appseal`` command-line tool. Registers all
subcommands under a single Click group.

Commands:
    compare      — Compare a trusted build with an untrusted rebuild.
    seal         — Issue a signed seal when the two builds match.
    verify-seal  — Check a seal's signature (and, optionally, its artifact).
    batch        — Compare and seal many pairs on a worker pool.
    catalog      — Build a catalog document from sealed artifacts.
    diff         — List release changes between two catalog documents.
    news         — Post release news into a catalog's feed.
    init         — Write a starter appseal.yaml.

Usage::

    appseal compare trusted.zip untrusted.zip
    appseal seal trusted.zip https://example.com/App-macOS.zip -o App.seal.json
    appseal verify-seal App.seal.json --artifact untrusted.zip
    appseal catalog catalog-manifest.yaml -o catalog.json --previous published.json
    appseal diff published.json catalog.json
    appseal news published.json catalog.json --limit 50
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from appseal import __version__
from appseal.cli.catalog_cmd import catalog_command
from appseal.cli.compare_cmd import compare_command
from appseal.cli.news_cmd import diff_command, news_command
from appseal.cli.seal_cmd import batch_command, seal_command, verify_seal_command
from appseal.config import DEFAULT_CONFIG_TEMPLATE


def _configure_logging(verbose: int) -> None:
    level = logging.WARNING
    if verbose == 1:
        level = logging.INFO
    elif verbose > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=verbose > 1)],
        force=True,
    )


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config", "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Config file (default: ./appseal.yaml, then ~/.appseal/config.yaml).",
)
@click.option("--verbose", "-v", count=True, help="Log progress (-vv for debug).")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: int) -> None:
    """appseal: Verify reproducible builds and publish app catalogs.

    Compare independently built artifacts entry by entry, seal the ones
    that match, and assemble sealed artifacts into a catalog with release
    news.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    if verbose:
        _configure_logging(verbose)


@click.command("init")
@click.argument("path", type=click.Path(dir_okay=False), default="appseal.yaml")
@click.option("--force", is_flag=True, help="Overwrite an existing file.")
def init_command(path: str, force: bool) -> None:
    """Write a starter config file to PATH (default: ./appseal.yaml)."""
    target = Path(path)
    if target.exists() and not force:
        click.echo(f"Error: {target} already exists (use --force to overwrite).")
        sys.exit(2)
    target.write_text(DEFAULT_CONFIG_TEMPLATE, encoding="utf-8")
    click.echo(f"Config written to: {target}")


# Register all subcommands
cli.add_command(compare_command)
cli.add_command(seal_command)
cli.add_command(verify_seal_command)
cli.add_command(batch_command)
cli.add_command(catalog_command)
cli.add_command(diff_command)
cli.add_command(news_command)
cli.add_command(init_command)
