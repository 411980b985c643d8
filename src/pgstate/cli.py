"""pgstate command line entry point.

Command groups live in pgstate.commands and are registered here.
"""

from typing import Annotated

import typer

from pgstate import __version__
from pgstate.commands.config import app as config_app
from pgstate.commands.extension import app as extension_app


app = typer.Typer(
    name="pgstate",
    help="Declarative state management for PostgreSQL catalog objects.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
)

app.add_typer(extension_app, name="extension")
app.add_typer(config_app, name="config")


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"pgstate version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Create, read, update, drop and import PostgreSQL catalog objects.

    [bold]Examples:[/bold]
        pgstate extension create hstore
        pgstate extension update hstore --schema app
        pgstate extension import pgcrypto
        pgstate config show
    """


if __name__ == "__main__":
    app()
