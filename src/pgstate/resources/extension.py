"""Extension resource: reconciles declared extensions with pg_extension.

Every entry point:
1. checks the server supports extensions (before locking or any SQL)
2. validates input that can be checked locally
3. takes the target database's catalog lock (shared for read, exclusive
   for everything else) and talks to the catalog gateway

Nothing is retried and nothing is rolled back. If an update relocates the
extension and then fails to change its version, the relocation stays; the
next read reports that state and the engine decides what to do.
"""

from typing import Optional

from pgstate.core.context import ExecutionContext
from pgstate.core.exceptions import NotFoundError, ValidationError
from pgstate.core.executor import SQLExecutor
from pgstate.core.features import Feature
from pgstate.core.locking import CatalogLock
from pgstate.core.validation import validate_object_name, validate_schema_change
from pgstate.services.extension import (
    RESOURCE_TYPE,
    ExtensionCatalog,
    ExtensionDescriptor,
)


class ExtensionResource:
    """Lifecycle of one PostgreSQL extension."""

    kind = "extension"

    def __init__(
        self,
        ctx: ExecutionContext,
        executor: SQLExecutor,
        lock: CatalogLock,
        *,
        catalog: Optional[ExtensionCatalog] = None,
    ) -> None:
        """Initialize the resource.

        Args:
            ctx: Execution context
            executor: SQL executor bound to the target database
            lock: Catalog lock of that database
            catalog: Gateway to use (built from ctx/executor if None)
        """
        self.ctx = ctx
        self.executor = executor
        self.lock = lock
        self.catalog = catalog or ExtensionCatalog(ctx, executor)

    def _require_support(self) -> None:
        self.executor.require_feature(Feature.EXTENSION, RESOURCE_TYPE)

    def _read(self, identity: str) -> Optional[ExtensionDescriptor]:
        # Caller holds the catalog lock
        observed = self.catalog.fetch_by_name(identity)
        if observed is None:
            self.ctx.console.warn(f"PostgreSQL extension ({identity}) not found")
        return observed

    def create(self, desired: ExtensionDescriptor) -> Optional[ExtensionDescriptor]:
        """Install an extension and return its state as read back.

        Creating an extension that is already installed is a no-op.

        Raises:
            UnsupportedFeatureError: If the server has no extension support
            ValidationError: If the name is invalid
            ExecutionError: If the statement or the read-back fails
        """
        self._require_support()
        validate_object_name(desired.name, "extension")

        with self.lock.exclusive():
            self.catalog.create(
                desired.name,
                schema=desired.schema,
                version=desired.version,
            )
            return self._read(desired.name)

    def exists(self, identity: str) -> bool:
        """Check whether the extension is installed."""
        self._require_support()
        if not identity:
            return False

        # Exclusive, so the probe never runs between another
        # operation's statement and its read-back.
        with self.lock.exclusive():
            return self.catalog.exists_by_name(identity)

    def read(self, identity: str) -> Optional[ExtensionDescriptor]:
        """Read the extension's current state.

        Returns:
            The observed descriptor, or None when the extension is not
            installed (the engine should drop it from its state)
        """
        self._require_support()
        if not identity:
            return None

        with self.lock.shared():
            return self._read(identity)

    def changes(
        self,
        identity: str,
        previous: ExtensionDescriptor,
        desired: ExtensionDescriptor,
    ) -> dict[str, str]:
        """Work out which fields an update has to change.

        A field set to None in ``desired`` is left alone. A version of ""
        means "update to the default version"; it never matches the version
        read back, so it is for one-shot use (like ``--latest``) and should
        not be kept in a desired state that is reconciled repeatedly.

        Returns:
            Mapping of field name to new value, in the order they must be
            applied (schema before version)

        Raises:
            ValidationError: If the name changes or the new schema is empty
        """
        if desired.name != identity:
            raise ValidationError(
                f"Cannot rename extension '{identity}' to '{desired.name}'",
                hint="Extensions cannot be renamed; drop and create the new one instead",
            )

        changes: dict[str, str] = {}

        if desired.schema is not None and desired.schema != previous.schema:
            changes["schema"] = validate_schema_change(identity, desired.schema)

        if desired.version is not None and desired.version != previous.version:
            changes["version"] = desired.version

        return changes

    def update(
        self,
        identity: str,
        previous: ExtensionDescriptor,
        desired: ExtensionDescriptor,
    ) -> Optional[ExtensionDescriptor]:
        """Move the extension and/or change its version.

        When nothing differs no SQL is sent and ``previous`` is returned.
        Otherwise the state is read back after the changes.

        Raises:
            UnsupportedFeatureError: If the server has no extension support
            ValidationError: Before any SQL, for invalid changes
            ExecutionError: If an ALTER statement or the read-back fails
        """
        self._require_support()
        changes = self.changes(identity, previous, desired)

        if not changes:
            self.ctx.console.verbose(f"Extension '{identity}' is up to date")
            return previous

        with self.lock.exclusive():
            if "schema" in changes:
                self.catalog.relocate(identity, changes["schema"])
            if "version" in changes:
                self.catalog.reversion(identity, changes["version"] or None)
            return self._read(identity)

    def delete(self, identity: str) -> None:
        """Drop the extension.

        Raises:
            UnsupportedFeatureError: If the server has no extension support
            ValidationError: If identity is empty
            ExecutionError: If the drop fails, e.g. because objects depend on it
        """
        self._require_support()
        validate_object_name(identity, "extension")

        with self.lock.exclusive():
            self.catalog.drop(identity)

    def import_state(self, raw_id: str) -> ExtensionDescriptor:
        """Adopt an installed extension; the raw id is its name.

        Raises:
            NotFoundError: If no extension has that name
        """
        observed = self.read(raw_id)
        if observed is None:
            raise NotFoundError(
                f"Cannot import extension '{raw_id}': it is not installed",
                object_type="extension",
                object_name=raw_id,
                hint="Check the name with: pgstate extension list",
            )
        return observed
