from __future__ import annotations

import json
import urllib.error

import typer
from rich.console import Console

from pricefold.catalog.reader import CatalogFormatError

_err_console = Console(stderr=True)


def ctx_flags(ctx: typer.Context) -> dict:
    """json/verbose flags, resolved through the parent chain for sub-apps."""
    while ctx is not None:
        if ctx.obj:
            return ctx.obj
        ctx = ctx.parent
    return {}


def handle_error(ctx: typer.Context, e: Exception) -> None:
    """Print a clean error message and exit 1."""
    import yaml

    flags = ctx_flags(ctx)
    verbose = flags.get("verbose", False)
    json_mode = flags.get("json", False)

    if isinstance(e, FileNotFoundError):
        msg = f"File not found: {e}"
    elif isinstance(e, yaml.YAMLError):
        msg = f"Invalid YAML: {e}"
    elif isinstance(e, CatalogFormatError):
        msg = f"Invalid catalog: {e}"
    elif isinstance(e, urllib.error.URLError):
        msg = f"Catalog unreachable: {e.reason}"
    elif "validation" in type(e).__name__.lower():
        msg = f"Invalid settings: {e}"
    elif isinstance(e, ValueError):
        msg = str(e)
    else:
        msg = f"Error: {e}"

    if json_mode:
        print(json.dumps({"error": msg}))
    else:
        _err_console.print(f"[red]Error:[/red] {msg}")

    if verbose:
        _err_console.print_exception()

    raise typer.Exit(1)
