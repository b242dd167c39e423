"""``appseal compare <trusted> <untrusted>`` — Compare two build artifacts.

Reads both archives (local paths or ``http(s)://`` URLs), hashes every
entry, and reports the paths whose content differs or that exist on one
side only.

Exit Codes:
    0 — The artifacts match entry for entry.
    1 — At least one entry differs or is one-sided.
    2 — An archive could not be read, or both are the same artifact.
"""

from __future__ import annotations

import sys

import click

from appseal.cli.fetch import load_source
from appseal.cli.options import EXIT_FAILED, EXIT_OK, emit_json, fail, format_option, get_config
from appseal.core.archive import Artifact, ArchiveReader
from appseal.core.compare import ComparisonResult, compare
from appseal.exceptions import AppSealError


def read_pair(
    reader: ArchiveReader, trusted: str, untrusted: str
) -> tuple[Artifact, Artifact]:
    """Load and read both sources.

    Raises:
        FetchError: If a source cannot be loaded.
        MalformedArchive: If a source is not a readable archive.
    """
    return (
        reader.read(load_source(trusted)),
        reader.read(load_source(untrusted)),
    )


def compare_sources(
    ctx: click.Context, trusted: str, untrusted: str, output_format: str
) -> ComparisonResult:
    """Compare two sources, exiting with code 2 on unusable input."""
    config = get_config(ctx, output_format)
    reader = ArchiveReader(config.reader.excluded_suffixes)
    try:
        trusted_artifact, untrusted_artifact = read_pair(reader, trusted, untrusted)
        return compare(trusted_artifact, untrusted_artifact)
    except AppSealError as exc:
        fail(exc, output_format)


@click.command("compare")
@click.argument("trusted")
@click.argument("untrusted")
@format_option
@click.pass_context
def compare_command(
    ctx: click.Context, trusted: str, untrusted: str, output_format: str
) -> None:
    """Compare a TRUSTED reference build with an UNTRUSTED rebuild.

    Both arguments may be file paths or http(s) URLs. Code-signature
    entries are ignored, since the two builds are signed differently.

    Exit code 0 if the artifacts match, 1 if they differ.
    """
    result = compare_sources(ctx, trusted, untrusted, output_format)

    if output_format == "json":
        emit_json(result.to_dict())
    else:
        from appseal.cli.output import print_comparison
        print_comparison(result)

    sys.exit(EXIT_OK if result.is_match else EXIT_FAILED)
