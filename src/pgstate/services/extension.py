"""PostgreSQL extension catalog gateway.

Issues exactly the statements needed to create, inspect, alter and drop a
single extension, and turns catalog rows into ExtensionDescriptor values.

Every identifier placed in statement text goes through quote_identifier;
values compared in WHERE clauses are bound as $1 parameters.
"""

from dataclasses import asdict, dataclass
from typing import Any, Mapping, Optional

from pgstate.core.context import ExecutionContext
from pgstate.core.executor import SQLExecutor
from pgstate.core.features import Feature
from pgstate.core.validation import quote_identifier, validate_schema_change


RESOURCE_TYPE = "postgresql_extension"

EXISTS_QUERY = "SELECT extname FROM pg_catalog.pg_extension WHERE extname = $1"

READ_QUERY = (
    "SELECT e.extname, n.nspname, e.extversion "
    "FROM pg_catalog.pg_extension e, pg_catalog.pg_namespace n "
    "WHERE n.oid = e.extnamespace AND e.extname = $1"
)

LIST_QUERY = (
    "SELECT e.extname, n.nspname, e.extversion "
    "FROM pg_catalog.pg_extension e, pg_catalog.pg_namespace n "
    "WHERE n.oid = e.extnamespace "
    "ORDER BY e.extname"
)


@dataclass(frozen=True)
class ExtensionDescriptor:
    """Identity and state of one extension.

    Attributes:
        name: Extension name; the identity, cannot change in place
        schema: Schema holding the extension's objects (None = server default)
        version: Installed or requested version (None = default version)
    """
    name: str
    schema: Optional[str] = None
    version: Optional[str] = None

    @property
    def id(self) -> str:
        """Identity used to find the extension again."""
        return self.name

    def to_dict(self) -> dict[str, Optional[str]]:
        """Convert to a plain dictionary for state files."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ExtensionDescriptor":
        """Build a descriptor from a state or config mapping."""
        return cls(
            name=str(data["name"]),
            schema=data.get("schema"),
            version=data.get("version"),
        )


def build_create_sql(
    name: str,
    schema: Optional[str] = None,
    version: Optional[str] = None,
) -> str:
    """Build CREATE EXTENSION IF NOT EXISTS with optional SCHEMA/VERSION."""
    parts = [f"CREATE EXTENSION IF NOT EXISTS {quote_identifier(name)}"]
    if schema:
        parts.append(f"SCHEMA {quote_identifier(schema)}")
    if version:
        parts.append(f"VERSION {quote_identifier(version)}")
    return " ".join(parts)


def build_relocate_sql(name: str, new_schema: str) -> str:
    """Build ALTER EXTENSION ... SET SCHEMA."""
    return f"ALTER EXTENSION {quote_identifier(name)} SET SCHEMA {quote_identifier(new_schema)}"


def build_reversion_sql(name: str, new_version: Optional[str] = None) -> str:
    """Build ALTER EXTENSION ... UPDATE, with TO only when a version is given."""
    sql = f"ALTER EXTENSION {quote_identifier(name)} UPDATE"
    if new_version:
        sql += f" TO {quote_identifier(new_version)}"
    return sql


def build_drop_sql(name: str) -> str:
    """Build DROP EXTENSION (never CASCADE)."""
    return f"DROP EXTENSION {quote_identifier(name)}"


class ExtensionCatalog:
    """Gateway to pg_catalog.pg_extension.

    Each method is a single round trip. Methods do not take catalog locks;
    that is the caller's job.
    """

    def __init__(self, ctx: ExecutionContext, executor: SQLExecutor) -> None:
        """Initialize the gateway.

        Args:
            ctx: Execution context
            executor: SQL executor bound to the target database
        """
        self.ctx = ctx
        self.executor = executor

    def create(
        self,
        name: str,
        *,
        schema: Optional[str] = None,
        version: Optional[str] = None,
    ) -> None:
        """Create an extension if it is not installed yet.

        Raises:
            UnsupportedFeatureError: If the server has no extension support
            ExecutionError: If the statement fails (unknown extension,
                missing privileges, unavailable version, ...)
        """
        self.executor.require_feature(Feature.EXTENSION, RESOURCE_TYPE)

        self.ctx.console.step(f"Creating extension '{name}'")
        self.executor.execute(
            build_create_sql(name, schema, version),
            context="creating extension",
        )

    def fetch_by_name(self, name: str) -> Optional[ExtensionDescriptor]:
        """Read an extension's current schema and version.

        Returns:
            The descriptor, or None if no extension has that name
        """
        row = self.executor.fetch_one(READ_QUERY, (name,), context="reading extension")
        if row is None:
            return None

        ext_name, ext_schema, ext_version = row
        return ExtensionDescriptor(name=ext_name, schema=ext_schema, version=ext_version)

    def exists_by_name(self, name: str) -> bool:
        """Check whether an extension is installed."""
        row = self.executor.fetch_one(EXISTS_QUERY, (name,), context="checking extension")
        return row is not None

    def relocate(self, name: str, new_schema: str) -> None:
        """Move an extension's objects into another schema.

        Raises:
            ValidationError: If new_schema is empty
            ExecutionError: If the schema does not exist or the extension
                is not relocatable
        """
        validate_schema_change(name, new_schema)

        self.ctx.console.step(f"Moving extension '{name}' to schema '{new_schema}'")
        self.executor.execute(
            build_relocate_sql(name, new_schema),
            context="updating extension SCHEMA",
        )

    def reversion(self, name: str, new_version: Optional[str] = None) -> None:
        """Update an extension to a version (default version if omitted)."""
        target = new_version or "default version"
        self.ctx.console.step(f"Updating extension '{name}' to {target}")
        self.executor.execute(
            build_reversion_sql(name, new_version),
            context="updating extension version",
        )

    def drop(self, name: str) -> None:
        """Drop an extension.

        Raises:
            ExecutionError: If the extension is missing or other objects
                depend on it
        """
        self.ctx.console.step(f"Dropping extension '{name}'")
        self.executor.execute(build_drop_sql(name), context="deleting extension")

    def list_installed(self) -> list[ExtensionDescriptor]:
        """List all installed extensions, ordered by name."""
        self.executor.require_feature(Feature.EXTENSION, RESOURCE_TYPE)
        rows = self.executor.fetch_all(LIST_QUERY, context="listing extensions")
        return [
            ExtensionDescriptor(name=name, schema=schema, version=version)
            for name, schema, version in rows
        ]
