"""Configuration commands.

Commands:
- pgstate config show
- pgstate config init
- pgstate config validate
- pgstate config example
"""

from typing import Annotated

import typer

from pgstate.commands import ConfigOption, NoColorOption, VerboseOption, handle_error
from pgstate.core.config import AppConfig, get_example_config, init_config
from pgstate.core.context import create_context
from pgstate.core.exceptions import PGStateError


app = typer.Typer(
    name="config",
    help="Configuration management.",
    no_args_is_help=True,
)


def _password_status(app_config: AppConfig) -> str:
    return "Set" if app_config.secrets.pgstate_password else "Not set (libpq falls back to ~/.pgpass)"


@app.command("show")
def config_show(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Show the effective configuration.

    Values missing from the file are shown with their defaults. The
    password is never printed.
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        app_config = ctx.config
        ctx.console.summary("Source", {
            "Config file": ctx.config_path,
            "File exists": "yes" if ctx.config_path.exists() else "no (defaults)",
            "Target": ctx.target,
            "PGSTATE_PASSWORD": _password_status(app_config),
        })
        ctx.console.yaml(app_config.config.to_yaml())
    except PGStateError as e:
        handle_error(e)


@app.command("init")
def config_init(
    config: ConfigOption = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing file.", is_flag=True),
    ] = False,
    no_color: NoColorOption = False,
) -> None:
    """Write a commented configuration file with default values."""
    ctx = create_context(no_color=no_color, config=config)

    try:
        init_config(ctx.config_path, force=force)
    except PGStateError as e:
        handle_error(e)

    ctx.console.success(f"Configuration file created: {ctx.config_path}")
    ctx.console.hint("Point postgres.host/database at your server and export PGSTATE_PASSWORD")


@app.command("validate")
def config_validate(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Check that the configuration file exists and every value is valid.

    Exits with status 2 if it does not.
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    if not ctx.config_path.exists():
        ctx.console.error(f"Configuration file not found: {ctx.config_path}")
        ctx.console.hint("Create it with: pgstate config init")
        raise typer.Exit(2)

    try:
        app_config = AppConfig(config_path=ctx.config_path)
    except PGStateError as e:
        handle_error(e)

    ctx.console.success(f"Configuration is valid: {ctx.config_path}")
    ctx.console.info(f"Target database: {app_config.postgres.target_key}")
    if app_config.postgres.expected_version:
        ctx.console.info(
            f"Server version detection disabled, assuming {app_config.postgres.expected_version}"
        )
    if ctx.is_verbose:
        ctx.console.yaml(app_config.config.to_yaml())


@app.command("example")
def config_example() -> None:
    """Print an example configuration file."""
    typer.echo(get_example_config(), nl=False)
