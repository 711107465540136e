"""Import the vendor price catalog into the local price store."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from pricefold_cli.utils import ctx_flags, handle_error

console = Console()


def import_catalog(
    ctx: typer.Context,
    url: Annotated[
        str | None,
        typer.Option("--url", "-u", help="Base URL of the price API (default: configured prices_url)"),
    ] = None,
    file: Annotated[
        Path | None,
        typer.Option("--file", "-f", help="Read the catalog CSV from a local file instead"),
    ] = None,
    regions: Annotated[
        str | None,
        typer.Option("--regions", "-r", help="Regex of the regions to import"),
    ] = None,
    instance_type: Annotated[
        str | None,
        typer.Option("--instance-type", "-t", help="Regex of the instance types to import"),
    ] = None,
    os: Annotated[
        str | None,
        typer.Option("--os", help="Regex of the operating systems to import"),
    ] = None,
    hours_month: Annotated[
        float | None,
        typer.Option("--hours-month", help="Hours in a month"),
    ] = None,
    db: Annotated[
        Path | None,
        typer.Option("--db", help="SQLite price store path"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", help="Rewrite every price even when unchanged"),
    ] = False,
) -> None:
    """Import the price catalog, updating only what changed."""
    if url and file:
        console.print("[red]Error:[/red] --url and --file are mutually exclusive.")
        raise typer.Exit(1)
    try:
        from pricefold.catalog.importer import install
        from pricefold.config import load_settings

        settings = load_settings(
            {
                "prices_url": url,
                "regions": regions,
                "instance_type": instance_type,
                "os": os,
                "hours_month": hours_month,
                "db_path": db,
            }
        )
        location = str(file) if file else settings.catalog_url
        with console.status(f"Importing {location}..."):
            result = install(settings, force=force, location=location)

        if ctx_flags(ctx).get("json"):
            print(json.dumps(result.to_dict(), indent=2))
            return

        table = Table(show_header=True, header_style="bold")
        table.add_column("Prices", justify="right")
        table.add_column("Cost updates", justify="right")
        table.add_column("Types", justify="right")
        table.add_column("Locations", justify="right")
        table.add_column("Duration", justify="right")
        table.add_row(
            str(result.nb_prices),
            str(result.nb_cost_updates),
            str(result.nb_types),
            str(result.nb_locations),
            f"{result.duration:.1f}s",
        )
        console.print(table)

        suffix = " [dim](forced)[/dim]" if force else ""
        console.print(f"[green]Done.[/green] {result.nb_prices} prices from {result.location}{suffix}")

    except typer.Exit:
        raise
    except Exception as e:
        handle_error(ctx, e)
