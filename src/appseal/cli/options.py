"""Shared options and helpers for appseal subcommands.

Exit Codes (all commands):
    0 — Success.
    1 — Verification failure: mismatch, invalid seal, failed inputs.
    2 — Unusable input: unreadable or malformed files, bad configuration.
"""

from __future__ import annotations

import json
import sys
from typing import Any, NoReturn

import click

from appseal.config import AppSealConfig, load_config
from appseal.exceptions import AppSealError, ConfigError

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNUSABLE = 2

format_option = click.option(
    "--format", "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text).",
)


def emit_json(data: Any) -> None:
    """Write *data* to stdout as indented JSON with sorted keys."""
    click.echo(json.dumps(data, indent=2, sort_keys=True, default=str))


def fail(error: AppSealError, output_format: str, code: int = EXIT_UNUSABLE) -> NoReturn:
    """Report *error* in the requested format and exit with *code*."""
    if output_format == "json":
        emit_json(error.to_dict())
    else:
        from appseal.cli.output import print_error

        print_error(error)
    sys.exit(code)


def get_config(ctx: click.Context, output_format: str = "text") -> AppSealConfig:
    """Load (once per invocation) the config selected by ``--config``."""
    obj = ctx.find_root().ensure_object(dict)
    if "config" not in obj:
        try:
            obj["config"] = load_config(obj.get("config_path"))
        except ConfigError as exc:
            fail(exc, output_format)
    return obj["config"]
