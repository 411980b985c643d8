"""Resource kinds managed by pgstate.

Each kind implements ResourceLifecycle. Kinds are looked up by name so a
driver can dispatch on the resource type found in its state.
"""

from pgstate.core.context import ExecutionContext
from pgstate.core.exceptions import ValidationError
from pgstate.core.executor import SQLExecutor
from pgstate.core.locking import CatalogLock
from pgstate.resources.base import ResourceLifecycle
from pgstate.resources.extension import ExtensionResource


RESOURCE_KINDS: dict[str, type] = {
    ExtensionResource.kind: ExtensionResource,
}


def build_resource(
    kind: str,
    ctx: ExecutionContext,
    executor: SQLExecutor,
    lock: CatalogLock,
) -> ResourceLifecycle:
    """Create the lifecycle implementation for a resource kind.

    Raises:
        ValidationError: If the kind is unknown
    """
    try:
        resource_cls = RESOURCE_KINDS[kind]
    except KeyError:
        raise ValidationError(
            f"Unknown resource kind: {kind}",
            hint=f"Supported kinds: {', '.join(sorted(RESOURCE_KINDS))}",
        ) from None
    return resource_cls(ctx, executor, lock)


__all__ = [
    "RESOURCE_KINDS",
    "ResourceLifecycle",
    "ExtensionResource",
    "build_resource",
]
