import logging

import typer

from pricefold_cli import __version__
from pricefold_cli.commands.import_cmd import import_catalog
from pricefold_cli.commands.prices_cmd import prices_app


def _version_callback(value: bool) -> None:
    if value:
        print(f"pricefold {__version__}")
        raise typer.Exit()


app = typer.Typer(
    name="pricefold",
    help="Import vendor cloud price catalogs into a normalized price store",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version", callback=_version_callback, is_eager=True
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["json"] = json_output
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


app.command(name="import")(import_catalog)
app.add_typer(prices_app, name="prices")
