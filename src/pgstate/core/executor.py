"""SQL execution against the target database.

Provides:
- A lazily opened autocommit psycopg connection
- Statements with native $1-style parameters (RawCursor)
- Conversion of driver errors into ExecutionError with context
- Server version and feature detection
"""

import threading
from typing import Any, Callable, Optional, Sequence

import psycopg

from pgstate.core.context import ExecutionContext
from pgstate.core.exceptions import ExecutionError, UnsupportedFeatureError
from pgstate.core.features import (
    FEATURE_MIN_VERSIONS,
    Feature,
    feature_supported,
    format_version,
    parse_version,
)


class SQLExecutor:
    """Runs SQL for the resources and reports server capabilities.

    Features:
    - One connection per executor, opened on first use
    - Autocommit, so each DDL statement commits on its own
    - Every statement logged at debug verbosity
    - Driver errors wrapped with the operation that failed

    Usage:
        with SQLExecutor(ctx) as executor:
            executor.execute('DROP EXTENSION "hstore"', context="deleting extension")
    """

    def __init__(
        self,
        ctx: ExecutionContext,
        *,
        connect: Optional[Callable[..., psycopg.Connection]] = None,
    ) -> None:
        """Initialize executor with context.

        Args:
            ctx: Execution context with configuration
            connect: Connection factory (defaults to psycopg.connect)
        """
        self.ctx = ctx
        self._connect = connect or psycopg.connect
        self._conn: Optional[psycopg.Connection] = None
        self._server_version: Optional[int] = None
        # Guards lazy connect and version detection across threads
        self._connect_lock = threading.RLock()

    def __enter__(self) -> "SQLExecutor":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def target(self) -> str:
        """Key of the target database (host:port/dbname)."""
        return self.ctx.target

    def connection(self) -> psycopg.Connection:
        """Get the open connection, connecting if needed.

        Raises:
            ExecutionError: If the server cannot be reached
        """
        with self._connect_lock:
            if self._conn is None or self._conn.closed:
                self.ctx.console.debug(f"Connecting to {self.target}")
                try:
                    self._conn = self._connect(
                        autocommit=True,
                        cursor_factory=psycopg.RawCursor,
                        **self.ctx.config.conninfo_kwargs(),
                    )
                except psycopg.Error as e:
                    raise ExecutionError(
                        f"Cannot connect to PostgreSQL at {self.target}",
                        sqlstate=getattr(e, "sqlstate", None),
                        cause=e,
                        hint="Check the postgres section of the configuration and PGSTATE_PASSWORD",
                        details=[str(e)],
                    ) from e
            return self._conn

    def close(self) -> None:
        """Close the connection if open."""
        with self._connect_lock:
            if self._conn is not None and not self._conn.closed:
                self._conn.close()
            self._conn = None

    # =========================================================================
    # Capabilities
    # =========================================================================

    @property
    def server_version(self) -> int:
        """Server version number (e.g. 160002).

        Taken from ``postgres.expected_version`` when configured, otherwise
        from the connection handshake. No statement is sent either way.
        """
        with self._connect_lock:
            if self._server_version is None:
                expected = self.ctx.config.postgres.expected_version
                if expected:
                    self._server_version = parse_version(expected)
                else:
                    self._server_version = self.connection().info.server_version
            return self._server_version

    def feature_supported(self, feature: Feature) -> bool:
        """Check whether the target server supports a feature."""
        return feature_supported(feature, self.server_version)

    def require_feature(self, feature: Feature, resource: str) -> None:
        """Fail fast if the target server lacks a feature.

        Args:
            feature: Feature the caller needs
            resource: Resource type name for the error message

        Raises:
            UnsupportedFeatureError: If the server is too old
        """
        if self.feature_supported(feature):
            return

        version = format_version(self.server_version)
        raise UnsupportedFeatureError(
            f"{resource} resource is not supported for this Postgres version ({version})",
            feature=feature.value,
            server_version=version,
            hint=f"Requires PostgreSQL {format_version(FEATURE_MIN_VERSIONS[feature])} or later",
        )

    # =========================================================================
    # Statements
    # =========================================================================

    def execute(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        *,
        context: str,
    ) -> None:
        """Execute a statement that returns no rows.

        Args:
            sql: Statement text, with $1-style placeholders
            params: Values for the placeholders
            context: What is being done, e.g. "creating extension"

        Raises:
            ExecutionError: If the statement fails
        """
        self.ctx.console.debug(f"SQL: {sql}")
        try:
            with self.connection().cursor() as cur:
                cur.execute(sql, params)
        except psycopg.Error as e:
            raise self._wrap(e, sql, context) from e

    def fetch_one(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        *,
        context: str,
    ) -> Optional[tuple[Any, ...]]:
        """Run a query and return its first row, or None if there are none."""
        self.ctx.console.debug(f"SQL: {sql}")
        try:
            with self.connection().cursor() as cur:
                cur.execute(sql, params)
                return cur.fetchone()
        except psycopg.Error as e:
            raise self._wrap(e, sql, context) from e

    def fetch_all(
        self,
        sql: str,
        params: Optional[Sequence[Any]] = None,
        *,
        context: str,
    ) -> list[tuple[Any, ...]]:
        """Run a query and return all rows."""
        self.ctx.console.debug(f"SQL: {sql}")
        try:
            with self.connection().cursor() as cur:
                cur.execute(sql, params)
                return cur.fetchall()
        except psycopg.Error as e:
            raise self._wrap(e, sql, context) from e

    @staticmethod
    def _wrap(error: psycopg.Error, sql: str, context: str) -> ExecutionError:
        message = str(error).strip() or type(error).__name__
        return ExecutionError(
            f"Error {context}: {message}",
            statement=sql,
            sqlstate=getattr(error, "sqlstate", None),
            cause=error,
        )
