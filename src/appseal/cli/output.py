"""Rich output formatting helpers for the appseal CLI.

Provides consistent terminal output for comparison results, seals, catalog
build reports, release diffs, news feeds, and batch verification.

Status Color Mapping:
    MATCH / SEALED / VALID = bold green, MISMATCH / INVALID = bold red,
    one-sided paths = yellow, warnings = yellow
"""

from __future__ import annotations

from typing import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from appseal.core.catalog import BuildReport, NewsItem
from appseal.core.compare import ComparisonResult
from appseal.core.news import ReleaseDiff
from appseal.core.pipeline import BatchReport
from appseal.core.seal import Seal
from appseal.core.timestamps import format_timestamp
from appseal.exceptions import AppSealError, VerificationFailed

console = Console()

# Long hashes are shortened in tables; JSON output always carries them whole.
_HASH_WIDTH = 19


def short_hash(value: str) -> str:
    return value if len(value) <= _HASH_WIDTH else value[:_HASH_WIDTH] + "…"


def print_comparison(result: ComparisonResult) -> None:
    """Print a comparison verdict with every differing path.

    Args:
        result: The comparator's result.
    """
    if result.is_match:
        verdict = Text("MATCH", style="bold green")
    else:
        verdict = Text("MISMATCH", style="bold red")
    counts = result.summary()
    header = Text.assemble(
        ("Status: ", "bold"), verdict,
        ("  Matched: ", "bold"), (str(counts["matched"]), ""),
        ("  Mismatched: ", "bold"), (str(counts["mismatched"]), ""),
    )
    console.print(Panel(header, title="Artifact Comparison"))
    _print_differences(
        result.mismatch_tuples(), result.trusted_only_paths, result.untrusted_only_paths
    )


def _print_differences(
    mismatches: dict[str, tuple[str, str]],
    trusted_only: frozenset[str],
    untrusted_only: frozenset[str],
) -> None:
    if mismatches:
        table = Table(title="Hash Mismatches", show_header=True)
        table.add_column("Path", style="bold")
        table.add_column("Trusted", style="dim")
        table.add_column("Untrusted", style="red")
        for path, (trusted, untrusted) in mismatches.items():
            table.add_row(path, short_hash(trusted), short_hash(untrusted))
        console.print(table)

    if trusted_only or untrusted_only:
        table = Table(title="One-Sided Paths", show_header=True)
        table.add_column("Path", style="bold")
        table.add_column("Present In", style="yellow")
        for path in sorted(trusted_only):
            table.add_row(path, "trusted only")
        for path in sorted(untrusted_only):
            table.add_row(path, "untrusted only")
        console.print(table)


def print_verification_failed(error: VerificationFailed) -> None:
    console.print(Panel("[bold red]Verification failed[/bold red]", title="Seal"))
    _print_differences(error.mismatches, error.trusted_only, error.untrusted_only)


def print_seal(seal: Seal, *, title: str = "Seal Issued") -> None:
    """Print the fields of a seal."""
    console.print(Panel(f"[bold green]{seal.manifest_digest}[/bold green]", title=title))
    console.print(f"  Issuer:    [bold]{escape(seal.issuer)}[/bold]")
    console.print(f"  Issued:    {format_timestamp(seal.timestamp)}")
    console.print(f"  Algorithm: {seal.algorithm} / {seal.signature_algorithm}")


def print_build_report(report: BuildReport) -> None:
    """Print the apps in a freshly built catalog, then warnings and failures.

    Args:
        report: The builder's report.
    """
    catalog = report.catalog
    title = catalog.name or "Catalog"
    if not catalog.apps:
        console.print("[dim]No apps in catalog.[/dim]")
    else:
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Bundle ID", style="bold")
        table.add_column("Name")
        table.add_column("Version", justify="right")
        table.add_column("Platforms", style="dim")
        table.add_column("Sealed", justify="center")
        for entry in catalog.apps:
            sealed = (
                Text("YES", style="bold green")
                if entry.seal_reference
                else Text("-", style="dim")
            )
            table.add_row(
                entry.bundle_identifier,
                entry.name,
                entry.version,
                ", ".join(sorted(entry.artifact_hashes)),
                sealed,
            )
        console.print(table)

    for warning in report.warnings:
        console.print(
            f"[yellow]Duplicate version {warning.version} for "
            f"{warning.bundle_identifier}: kept input {warning.kept_index}, "
            f"dropped input {warning.dropped_index}[/yellow]"
        )
    for failure in report.failures:
        label = failure.bundle_identifier or f"input {failure.index}"
        console.print(f"[red]- {escape(label)}: {escape(str(failure.error))}[/red]")

    parts = [f"[bold]{len(catalog.apps)}[/bold] apps"]
    if report.warnings:
        parts.append(f"[yellow]{len(report.warnings)} warnings[/yellow]")
    if report.failures:
        parts.append(f"[red]{len(report.failures)} failures[/red]")
    console.print(" | ".join(parts))


def print_diffs(diffs: Sequence[ReleaseDiff]) -> None:
    if not diffs:
        console.print("[dim]No release changes.[/dim]")
        return
    table = Table(title="Release Changes", show_header=True, header_style="bold")
    table.add_column("Bundle ID", style="bold")
    table.add_column("Kind", justify="center")
    table.add_column("Old", style="dim", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Date", style="dim")
    for release in diffs:
        kind = (
            Text("NEW", style="bold green")
            if release.is_new_release
            else Text("UPDATE", style="cyan")
        )
        date = release.new.version_date
        table.add_row(
            release.bundle_identifier,
            kind,
            release.old.version if release.old else "-",
            release.new.version,
            format_timestamp(date) if date else "-",
        )
    console.print(table)


def print_news(items: Sequence[NewsItem]) -> None:
    if not items:
        console.print("[dim]No news.[/dim]")
        return
    table = Table(title="News", show_header=True, header_style="bold")
    table.add_column("Date", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Caption")
    for item in items:
        table.add_row(format_timestamp(item.date), item.title, item.caption)
    console.print(table)


def print_batch(report: BatchReport) -> None:
    table = Table(title="Batch Verification", show_header=True, header_style="bold")
    table.add_column("Pair", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Detail")
    for outcome in report.outcomes:
        if outcome.ok:
            status = Text("SEALED", style="bold green")
            detail = outcome.seal.manifest_digest if outcome.seal else ""
        else:
            status = Text("FAILED", style="bold red")
            detail = str(outcome.error) if outcome.error else ""
        table.add_row(outcome.label, status, detail)
    console.print(table)
    console.print(
        f"[bold]{len(report.outcomes)}[/bold] pairs | "
        f"[green]{len(report.sealed)} sealed[/green] | "
        f"[red]{len(report.failed)} failed[/red]"
    )


def print_error(error: AppSealError) -> None:
    """Render any appseal error as a one-line message."""
    if isinstance(error, VerificationFailed):
        print_verification_failed(error)
        return
    console.print(f"[bold red]Error:[/bold red] {escape(str(error))}")

