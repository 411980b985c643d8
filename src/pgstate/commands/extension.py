"""PostgreSQL extension commands.

Commands:
- pgstate extension create
- pgstate extension show
- pgstate extension exists
- pgstate extension update
- pgstate extension delete
- pgstate extension import
- pgstate extension list
"""

from contextlib import contextmanager
from typing import Generator, Optional

import typer
import yaml

from pgstate.commands import (
    ConfigOption,
    NoColorOption,
    QuietOption,
    VerboseOption,
    YesOption,
    handle_error,
)
from pgstate.core import (
    ExecutionContext,
    NotFoundError,
    PGStateError,
    SQLExecutor,
    create_context,
)
from pgstate.core.audit import AuditEventType, AuditLogger, configure_audit_logger
from pgstate.resources import build_resource
from pgstate.resources.extension import ExtensionResource
from pgstate.services.extension import ExtensionCatalog, ExtensionDescriptor


app = typer.Typer(
    name="extension",
    help="PostgreSQL extension management.",
    no_args_is_help=True,
)


@contextmanager
def _open_resource(ctx: ExecutionContext) -> Generator[ExtensionResource, None, None]:
    """Create the extension resource for the configured database."""
    with SQLExecutor(ctx) as executor:
        yield build_resource(ExtensionResource.kind, ctx, executor, ctx.catalog_lock)


def _get_audit(ctx: ExecutionContext) -> AuditLogger:
    return configure_audit_logger(ctx.config.audit)


def _show_descriptor(ctx: ExecutionContext, title: str, descriptor: ExtensionDescriptor) -> None:
    ctx.console.summary(
        title,
        {
            "Extension": descriptor.name,
            "Schema": descriptor.schema,
            "Version": descriptor.version,
        },
    )


@app.command("create")
def create_extension(
    name: str = typer.Argument(..., help="Extension name"),
    schema: Optional[str] = typer.Option(
        None, "--schema", "-s",
        help="Schema to install the extension into (server default if omitted)",
    ),
    version: Optional[str] = typer.Option(
        None, "--ext-version",
        help="Version to install (default version if omitted)",
    ),
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Create an extension if it is not installed yet.

    Examples:

        pgstate extension create hstore

        pgstate extension create pgcrypto --schema public --ext-version 1.3
    """
    ctx = create_context(verbose=verbose, quiet=quiet, no_color=no_color, config=config)
    desired = ExtensionDescriptor(name=name, schema=schema, version=version)

    try:
        audit = _get_audit(ctx)
        target = ctx.target
        try:
            with _open_resource(ctx) as resource:
                observed = resource.create(desired)
        except PGStateError as e:
            audit.log_failure(
                AuditEventType.EXTENSION_CREATE, "extension", name, str(e),
                target_database=target, parameters=desired.to_dict(),
            )
            raise

        audit.log_success(
            AuditEventType.EXTENSION_CREATE, "extension", name,
            target_database=target, parameters=desired.to_dict(),
        )
    except PGStateError as e:
        handle_error(e)

    if observed is None:
        ctx.console.warn(f"Extension '{name}' was created but could not be read back")
        raise typer.Exit(1)

    _show_descriptor(ctx, "Extension Created", observed)


@app.command("show")
def show_extension(
    name: str = typer.Argument(..., help="Extension name"),
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Show an installed extension's schema and version.

    Exits with status 1 if the extension is not installed.
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        with _open_resource(ctx) as resource:
            observed = resource.read(name)
    except PGStateError as e:
        handle_error(e)

    if observed is None:
        raise typer.Exit(1)

    _show_descriptor(ctx, f"Extension '{name}'", observed)


@app.command("exists")
def extension_exists(
    name: str = typer.Argument(..., help="Extension name"),
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Print whether an extension is installed.

    Exits with status 0 if it is, 1 if it is not.
    """
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        with _open_resource(ctx) as resource:
            found = resource.exists(name)
    except PGStateError as e:
        handle_error(e)

    ctx.console.print("true" if found else "false")
    if not found:
        raise typer.Exit(1)


@app.command("update")
def update_extension(
    name: str = typer.Argument(..., help="Extension name"),
    schema: Optional[str] = typer.Option(
        None, "--schema", "-s",
        help="Move the extension to this schema",
    ),
    version: Optional[str] = typer.Option(
        None, "--ext-version",
        help="Update the extension to this version",
    ),
    latest: bool = typer.Option(
        False, "--latest",
        help="Update the extension to its default version",
    ),
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Move an extension to another schema and/or change its version.

    Options left out are not changed.

    Examples:

        pgstate extension update hstore --schema app

        pgstate extension update postgis --latest
    """
    ctx = create_context(verbose=verbose, quiet=quiet, no_color=no_color, config=config)

    if latest and version:
        ctx.console.error("--ext-version and --latest cannot be used together")
        raise typer.Exit(3)

    desired = ExtensionDescriptor(
        name=name,
        schema=schema,
        version="" if latest else version,
    )

    try:
        audit = _get_audit(ctx)
        target = ctx.target
        with _open_resource(ctx) as resource:
            previous = resource.read(name)
            if previous is None:
                raise NotFoundError(
                    f"Extension '{name}' is not installed",
                    object_type="extension",
                    object_name=name,
                    hint=f"Create it with: pgstate extension create {name}",
                )

            with audit.correlation("extension_update"):
                try:
                    observed = resource.update(name, previous, desired)
                except PGStateError as e:
                    audit.log_failure(
                        AuditEventType.EXTENSION_UPDATE, "extension", name, str(e),
                        target_database=target,
                        parameters={"previous": previous.to_dict(), "desired": desired.to_dict()},
                    )
                    raise

                if observed is not previous:
                    audit.log_success(
                        AuditEventType.EXTENSION_UPDATE, "extension", name,
                        target_database=target,
                        parameters={"previous": previous.to_dict(), "desired": desired.to_dict()},
                    )
    except PGStateError as e:
        handle_error(e)

    if observed is None:
        ctx.console.warn(f"Extension '{name}' disappeared during the update")
        raise typer.Exit(1)

    if observed is previous:
        ctx.console.info(f"Extension '{name}' is already up to date")
    _show_descriptor(ctx, "Extension Updated", observed)


@app.command("delete")
def delete_extension(
    name: str = typer.Argument(..., help="Extension name"),
    yes: YesOption = False,
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    quiet: QuietOption = False,
    no_color: NoColorOption = False,
) -> None:
    """Drop an extension.

    Fails if other objects depend on the extension; nothing is cascaded.
    """
    ctx = create_context(yes=yes, verbose=verbose, quiet=quiet, no_color=no_color, config=config)

    if ctx.should_confirm:
        if not ctx.console.confirm(f"Drop extension '{name}'?"):
            ctx.console.warn("Operation cancelled")
            raise typer.Exit(0)

    try:
        audit = _get_audit(ctx)
        target = ctx.target
        try:
            with _open_resource(ctx) as resource:
                resource.delete(name)
        except PGStateError as e:
            audit.log_failure(
                AuditEventType.EXTENSION_DELETE, "extension", name, str(e),
                target_database=target,
            )
            raise

        audit.log_success(
            AuditEventType.EXTENSION_DELETE, "extension", name,
            target_database=target,
        )
    except PGStateError as e:
        handle_error(e)

    ctx.console.success(f"Extension '{name}' dropped")


@app.command("import")
def import_extension(
    name: str = typer.Argument(..., help="Name of the installed extension"),
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """Adopt an installed extension and print its state as YAML."""
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        audit = _get_audit(ctx)
        with _open_resource(ctx) as resource:
            observed = resource.import_state(name)

        audit.log_success(
            AuditEventType.EXTENSION_IMPORT, "extension", name,
            target_database=ctx.target,
            parameters=observed.to_dict(),
        )
    except PGStateError as e:
        handle_error(e)

    state = {"extension": {observed.id: observed.to_dict()}}
    ctx.console.print(
        yaml.safe_dump(state, default_flow_style=False, sort_keys=False),
        end="",
        markup=False,
        soft_wrap=True,
    )


@app.command("list")
def list_extensions(
    config: ConfigOption = None,
    verbose: VerboseOption = 0,
    no_color: NoColorOption = False,
) -> None:
    """List installed extensions with their schemas and versions."""
    ctx = create_context(verbose=verbose, no_color=no_color, config=config)

    try:
        with SQLExecutor(ctx) as executor:
            with ctx.catalog_lock.shared():
                extensions = ExtensionCatalog(ctx, executor).list_installed()
    except PGStateError as e:
        handle_error(e)

    if not extensions:
        ctx.console.info("No extensions installed")
        return

    ctx.console.table(
        f"Extensions on '{ctx.config.postgres.database}'",
        ["Extension", "Version", "Schema"],
        [[ext.name, ext.version or "", ext.schema or ""] for ext in extensions],
    )
