from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from pricefold_cli.utils import ctx_flags, handle_error

console = Console()

prices_app = typer.Typer(
    name="prices",
    help="Inspect the imported prices.",
    no_args_is_help=True,
)


def _open_store(db: Path | None):
    from pricefold.catalog.store import PriceStore
    from pricefold.config import load_settings

    settings = load_settings({"db_path": db})
    return PriceStore(settings.db_path), settings


@prices_app.callback(invoke_without_command=True)
def prices_callback(ctx: typer.Context) -> None:
    # Propagate json/verbose flags from parent ctx into this sub-app's ctx
    if ctx.obj is None and ctx.parent and ctx.parent.obj:
        ctx.obj = ctx.parent.obj
    elif ctx.obj is None:
        ctx.ensure_object(dict)


@prices_app.command("list")
def prices_list(
    ctx: typer.Context,
    region: Annotated[str | None, typer.Option("--region", "-r", help="Region, e.g. eu-west-2")] = None,
    term: Annotated[str | None, typer.Option("--term", help="Term code, e.g. ri-1y")] = None,
    os: Annotated[str | None, typer.Option("--os", help="Operating system, e.g. linux")] = None,
    type_: Annotated[str | None, typer.Option("--type", help="Instance type code")] = None,
    software: Annotated[str | None, typer.Option("--software", help="Software edition")] = None,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Maximum rows")] = 50,
    db: Annotated[Path | None, typer.Option("--db", help="SQLite price store path")] = None,
) -> None:
    """List stored instance prices, cheapest first."""
    try:
        store, settings = _open_store(db)
        results = store.find_instance_prices(
            node=settings.node,
            location=region,
            term=term,
            os=os,
            type_=type_,
            software=software,
            limit=limit,
        )
    except Exception as e:
        handle_error(ctx, e)
        return

    if ctx_flags(ctx).get("json"):
        print(json.dumps({"prices": [p.model_dump(mode="json") for p in results]}, indent=2))
        return

    if not results:
        console.print("[yellow]No prices found.[/yellow]")
        return

    table = Table(title="Instance prices")
    table.add_column("Code", style="cyan")
    table.add_column("Tenancy")
    table.add_column("Min CPU", justify="right")
    table.add_column("CPU step", justify="right")
    table.add_column("$/vCPU", justify="right")
    table.add_column("$/GiB", justify="right")
    table.add_column("$/VM", justify="right")
    table.add_column("$/period", justify="right")

    def money(value: float | None) -> str:
        return f"${value:,.3f}" if value is not None else "-"

    for p in results:
        table.add_row(
            p.code,
            p.tenancy.value,
            f"{p.min_cpu:g}",
            f"{p.increment_cpu:g}",
            money(p.cost_cpu),
            money(p.cost_ram),
            money(p.cost),
            money(p.cost_period),
        )

    console.print(table)


@prices_app.command("stats")
def prices_stats(
    ctx: typer.Context,
    db: Annotated[Path | None, typer.Option("--db", help="SQLite price store path")] = None,
) -> None:
    """Count the stored entities of each kind."""
    try:
        store, settings = _open_store(db)
        stats = store.get_stats(settings.node)
    except Exception as e:
        handle_error(ctx, e)
        return

    if ctx_flags(ctx).get("json"):
        print(json.dumps({"node": settings.node, "stats": stats}, indent=2))
        return

    table = Table(title=f"Price store: {settings.db_path}")
    table.add_column("Table", style="cyan")
    table.add_column("Rows", justify="right")
    for name, count in stats.items():
        table.add_row(name, str(count))
    console.print(table)
