"""CLI command groups and shared helpers."""

from pathlib import Path
from typing import Annotated, NoReturn, Optional

import typer
from rich.markup import escape

from pgstate.core.config import DEFAULT_CONFIG_PATH
from pgstate.core.exceptions import PGStateError
from pgstate.core.output import console


# Options shared by every command
VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase output verbosity. Can be repeated (-v, -vv shows SQL).",
    ),
]

QuietOption = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Only print errors, warnings and requested data.",
        is_flag=True,
    ),
]

NoColorOption = Annotated[
    bool,
    typer.Option(
        "--no-color",
        help="Print without ANSI colors.",
        is_flag=True,
    ),
]

YesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Skip confirmation prompts.",
        is_flag=True,
    ),
]

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help=f"Configuration file (default: {DEFAULT_CONFIG_PATH})",
        exists=False,
        file_okay=True,
        dir_okay=False,
    ),
]


def handle_error(error: PGStateError) -> NoReturn:
    """Report a PGStateError with its details and hint, then exit with its code."""
    console.error(error.message)

    for detail in error.details:
        console.print(f"  [dim]{escape(detail)}[/dim]")

    if error.hint:
        console.hint(error.hint)

    raise typer.Exit(error.exit_code)
