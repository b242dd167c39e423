"""Seal commands — issue, check, and batch-issue seals.

``appseal seal <trusted> <untrusted>``
    Compare two artifacts and, if they match, issue a signed seal.
``appseal verify-seal <seal.json> [--artifact PATH]``
    Check a seal's signature and, optionally, that it covers an artifact.
``appseal batch <pairs.yaml>``
    Compare and seal many pairs on a worker pool.

The signing key comes from the ``seal`` section of ``appseal.yaml``: an
environment variable for HMAC, a PEM file for Ed25519.

Exit Codes:
    0 — Seal issued / seal valid / every pair sealed.
    1 — Artifacts differ / seal invalid / some pair not sealed.
    2 — Unreadable input, malformed seal, or missing key material.
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
import yaml

from appseal.cli.compare_cmd import compare_sources
from appseal.cli.fetch import is_url, load_source
from appseal.cli.options import (
    EXIT_FAILED,
    EXIT_OK,
    emit_json,
    fail,
    format_option,
    get_config,
)
from appseal.config import AppSealConfig
from appseal.core.archive import ArchiveReader
from appseal.core.pipeline import VerificationJob, verify_batch
from appseal.core.seal import Seal, SealIssuer, verify_seal
from appseal.exceptions import (
    AppSealError,
    ConfigError,
    FetchError,
    SealMismatch,
    SealSignatureError,
    VerificationFailed,
)


def _issuer(config: AppSealConfig, issuer: str | None, output_format: str) -> SealIssuer:
    try:
        signer = config.seal.build_signer()
    except ConfigError as exc:
        fail(exc, output_format)
    return SealIssuer(signer, issuer or config.seal.issuer)


def _read_seal(path: str) -> Seal:
    try:
        return Seal.from_json(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise FetchError(path, exc.strerror or str(exc)) from exc
    except ValueError as exc:
        raise FetchError(path, f"invalid seal document: {exc}") from exc


# ---------------------------------------------------------------------------
# seal
# ---------------------------------------------------------------------------


@click.command("seal")
@click.argument("trusted")
@click.argument("untrusted")
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write the seal document here (default: stdout).",
)
@click.option("--issuer", default=None, help="Issuer identity (default: from config).")
@format_option
@click.pass_context
def seal_command(
    ctx: click.Context,
    trusted: str,
    untrusted: str,
    output: str | None,
    issuer: str | None,
    output_format: str,
) -> None:
    """Issue a seal if UNTRUSTED reproduces TRUSTED exactly.

    Exit code 0 when a seal is issued, 1 when the artifacts differ.
    """
    config = get_config(ctx, output_format)
    seal_issuer = _issuer(config, issuer, output_format)
    result = compare_sources(ctx, trusted, untrusted, output_format)

    try:
        seal = seal_issuer.issue(result)
    except VerificationFailed as exc:
        fail(exc, output_format, EXIT_FAILED)

    if output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(seal.to_json(), encoding="utf-8")

    if output_format == "json":
        emit_json(seal.to_dict())
    else:
        from appseal.cli.output import print_seal
        print_seal(seal)
        if output:
            click.echo(f"\nSeal written to: {output}")
    sys.exit(EXIT_OK)


# ---------------------------------------------------------------------------
# verify-seal
# ---------------------------------------------------------------------------


@click.command("verify-seal")
@click.argument("seal_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--artifact",
    default=None,
    help="Artifact (path or URL) the seal must cover.",
)
@format_option
@click.pass_context
def verify_seal_command(
    ctx: click.Context, seal_path: str, artifact: str | None, output_format: str
) -> None:
    """Check the seal at SEAL_PATH against the configured key.

    Exit code 0 if the seal is valid, 1 if it is not.
    """
    config = get_config(ctx, output_format)
    try:
        verifier = config.seal.build_signer()
        seal = _read_seal(seal_path)
        subject = None
        if artifact is not None:
            reader = ArchiveReader(config.reader.excluded_suffixes)
            subject = reader.read(load_source(artifact))
    except AppSealError as exc:
        fail(exc, output_format)

    try:
        verify_seal(seal, verifier, artifact=subject)
    except (SealSignatureError, SealMismatch) as exc:
        fail(exc, output_format, EXIT_FAILED)

    if output_format == "json":
        emit_json({"valid": True, "seal": seal.to_dict()})
    else:
        from appseal.cli.output import print_seal
        print_seal(seal, title="Seal Valid")
    sys.exit(EXIT_OK)


# ---------------------------------------------------------------------------
# batch
# ---------------------------------------------------------------------------


def _load_jobs(pairs_path: Path) -> list[VerificationJob]:
    """Read a pairs file and load every referenced archive.

    The file is YAML (or JSON) holding a ``pairs`` list of
    ``{label, trusted, untrusted}``. Relative paths resolve against the
    pairs file's directory.
    """
    try:
        data = yaml.safe_load(pairs_path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise FetchError(str(pairs_path), str(exc)) from exc
    pairs = data.get("pairs") if isinstance(data, dict) else None
    if not isinstance(pairs, list):
        raise FetchError(str(pairs_path), "expected a 'pairs' list")

    jobs: list[VerificationJob] = []
    for number, pair in enumerate(pairs):
        if not isinstance(pair, dict) or "trusted" not in pair or "untrusted" not in pair:
            raise FetchError(str(pairs_path), f"pair {number} needs 'trusted' and 'untrusted'")
        jobs.append(
            VerificationJob(
                label=str(pair.get("label", number)),
                trusted=load_source(_resolve(pairs_path.parent, pair["trusted"])),
                untrusted=load_source(_resolve(pairs_path.parent, pair["untrusted"])),
            )
        )
    return jobs


def _resolve(base: Path, source: str) -> str:
    source = str(source)
    if is_url(source) or Path(source).is_absolute():
        return source
    return str(base / source)


@click.command("batch")
@click.argument("pairs_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output-dir", "-o",
    type=click.Path(file_okay=False),
    default=None,
    help="Write one <label>.seal.json per sealed pair into this directory.",
)
@click.option("--workers", type=int, default=None, help="Worker pool size.")
@format_option
@click.pass_context
def batch_command(
    ctx: click.Context,
    pairs_path: str,
    output_dir: str | None,
    workers: int | None,
    output_format: str,
) -> None:
    """Compare and seal every pair listed in PAIRS_PATH.

    A failing pair never stops the others. Exit code 0 if every pair was
    sealed, 1 otherwise.
    """
    config = get_config(ctx, output_format)
    seal_issuer = _issuer(config, None, output_format)
    try:
        jobs = _load_jobs(Path(pairs_path))
    except AppSealError as exc:
        fail(exc, output_format)

    report = verify_batch(
        jobs,
        seal_issuer,
        reader=ArchiveReader(config.reader.excluded_suffixes),
        max_workers=workers or config.workers,
    )

    if output_dir:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        for outcome in report.sealed:
            (out / f"{outcome.label}.seal.json").write_text(
                outcome.seal.to_json(), encoding="utf-8"
            )

    if output_format == "json":
        emit_json({"outcomes": [o.to_dict() for o in report.outcomes]})
    else:
        from appseal.cli.output import print_batch
        print_batch(report)
    sys.exit(EXIT_OK if report.ok else EXIT_FAILED)
