"""``appseal catalog <manifest>`` — Build a catalog document.

The manifest is a YAML (or JSON) file listing the artifacts to publish::

    inputs:
      - artifact: build/Cloud-Cuckoo-macOS.zip
        seal: build/Cloud-Cuckoo-macOS.seal.json    # optional
        metadata:
          bundleIdentifier: app.Cloud-Cuckoo
          name: Cloud Cuckoo
          version: 0.9.75
          platform: macos
      - artifact: build/Cloud-Cuckoo-iOS.ipa
        metadata_file: build/Cloud-Cuckoo-iOS.yml

Relative paths resolve against the manifest's directory. An input that
cannot be loaded or validated is reported and skipped; the rest of the
catalog is still built.

Exit Codes:
    0 — Catalog built from every input.
    1 — Catalog built, but some inputs failed.
    2 — The manifest itself is unusable.
"""

from __future__ import annotations

import dataclasses
import sys
from pathlib import Path
from typing import Any

import click
import yaml

from appseal.cli.fetch import is_url, load_source
from appseal.cli.options import (
    EXIT_FAILED,
    EXIT_OK,
    emit_json,
    fail,
    format_option,
    get_config,
)
from appseal.core.archive import ArchiveReader
from appseal.core.catalog import BuildFailure, BuildInput, BuildReport, Catalog, CatalogBuilder
from appseal.core.news import import_version_dates
from appseal.core.seal import Seal
from appseal.exceptions import AppSealError, FetchError


def _resolve(base: Path, source: str) -> str:
    source = str(source)
    if is_url(source) or Path(source).is_absolute():
        return source
    return str(base / source)


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise FetchError(str(path), exc.strerror or str(exc)) from exc
    except yaml.YAMLError as exc:
        raise FetchError(str(path), f"invalid YAML: {exc}") from exc


def _load_input(base: Path, item: Any, reader: ArchiveReader) -> BuildInput:
    """Resolve one manifest item into a ``BuildInput``.

    Raises:
        AppSealError: If the artifact, seal, or metadata cannot be loaded.
    """
    if not isinstance(item, dict) or "artifact" not in item:
        raise FetchError(str(item), "manifest input needs an 'artifact'")

    if "metadata_file" in item:
        metadata = _read_yaml(Path(_resolve(base, item["metadata_file"])))
    else:
        metadata = item.get("metadata", {})
    if not isinstance(metadata, dict):
        raise FetchError(str(item["artifact"]), "metadata must be a mapping")

    seal = None
    if item.get("seal"):
        seal_path = Path(_resolve(base, item["seal"]))
        try:
            seal = Seal.from_json(seal_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise FetchError(str(seal_path), exc.strerror or str(exc)) from exc
        except ValueError as exc:
            raise FetchError(str(seal_path), f"invalid seal document: {exc}") from exc

    artifact = reader.read(load_source(_resolve(base, item["artifact"])))
    return BuildInput(artifact=artifact, metadata=metadata, seal=seal)


def build_from_manifest(
    manifest_path: Path, builder: CatalogBuilder, reader: ArchiveReader
) -> BuildReport:
    """Load every manifest input and build the catalog.

    Load failures and build failures are merged into one report, indexed
    by manifest position.

    Raises:
        FetchError: If the manifest is unreadable or has no ``inputs`` list.
    """
    data = _read_yaml(manifest_path)
    items = data.get("inputs") if isinstance(data, dict) else None
    if not isinstance(items, list):
        raise FetchError(str(manifest_path), "expected an 'inputs' list")

    base = manifest_path.parent
    positions: list[int] = []
    inputs: list[BuildInput] = []
    failures: list[BuildFailure] = []
    for position, item in enumerate(items):
        try:
            inputs.append(_load_input(base, item, reader))
            positions.append(position)
        except AppSealError as exc:
            metadata = item.get("metadata") if isinstance(item, dict) else None
            bundle_id = metadata.get("bundleIdentifier") if isinstance(metadata, dict) else None
            failures.append(
                BuildFailure(index=position, error=exc, bundle_identifier=bundle_id)
            )

    report = builder.build(inputs)
    failures.extend(
        dataclasses.replace(failure, index=positions[failure.index])
        for failure in report.failures
    )
    warnings = tuple(
        dataclasses.replace(
            warning,
            kept_index=positions[warning.kept_index],
            dropped_index=positions[warning.dropped_index],
        )
        for warning in report.warnings
    )
    return BuildReport(
        catalog=report.catalog,
        warnings=warnings,
        failures=tuple(sorted(failures, key=lambda f: f.index)),
    )


@click.command("catalog")
@click.argument("manifest", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the catalog document here.",
)
@click.option(
    "--previous",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Previously published catalog; carries over version dates and news.",
)
@format_option
@click.pass_context
def catalog_command(
    ctx: click.Context,
    manifest: str,
    output: str | None,
    previous: str | None,
    output_format: str,
) -> None:
    """Build a catalog from the artifacts listed in MANIFEST.

    Exit code 0 if every input was catalogued, 1 if some failed.
    """
    config = get_config(ctx, output_format)
    builder = CatalogBuilder(
        name=config.catalog.name,
        identifier=config.catalog.identifier,
        strict_metadata=config.catalog.strict_metadata,
        require_seal=config.catalog.require_seal,
        keep_history=config.catalog.keep_history,
    )
    reader = ArchiveReader(config.reader.excluded_suffixes)
    try:
        report = build_from_manifest(Path(manifest), builder, reader)
        if previous:
            old = read_catalog(previous)
            catalog = import_version_dates(report.catalog, old)
            catalog = dataclasses.replace(catalog, news=old.news)
            report = dataclasses.replace(report, catalog=catalog)
    except AppSealError as exc:
        fail(exc, output_format)

    if output:
        report.catalog.write(Path(output))

    if output_format == "json":
        emit_json({
            "catalog": report.catalog.to_dict(),
            "warnings": [w.to_dict() for w in report.warnings],
            "failures": [f.to_dict() for f in report.failures],
        })
    else:
        from appseal.cli.output import print_build_report
        print_build_report(report)
        if output:
            click.echo(f"\nCatalog written to: {output}")
    sys.exit(EXIT_OK if report.ok else EXIT_FAILED)


def read_catalog(path: str) -> Catalog:
    """Read a catalog document, mapping read and parse errors to ``FetchError``."""
    try:
        return Catalog.read(Path(path))
    except OSError as exc:
        raise FetchError(path, exc.strerror or str(exc)) from exc
    except ValueError as exc:
        raise FetchError(path, f"invalid catalog document: {exc}") from exc
