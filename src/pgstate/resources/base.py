"""Resource lifecycle contract.

A declarative engine drives every catalog object kind through the same
operations. Each kind implements this protocol with its own descriptor
type; identities are plain strings.

Absence is not an error: read() returns None when the object is gone
(for example dropped outside the engine), and the engine should remove it
from its state. update() and create() return the state read back from the
catalog after the change.
"""

from typing import Optional, Protocol, TypeVar


DescriptorT = TypeVar("DescriptorT")


class ResourceLifecycle(Protocol[DescriptorT]):
    """Operations a declarative engine needs for one resource kind."""

    kind: str

    def create(self, desired: DescriptorT) -> Optional[DescriptorT]:
        ...

    def exists(self, identity: str) -> bool:
        ...

    def read(self, identity: str) -> Optional[DescriptorT]:
        ...

    def update(
        self,
        identity: str,
        previous: DescriptorT,
        desired: DescriptorT,
    ) -> Optional[DescriptorT]:
        ...

    def delete(self, identity: str) -> None:
        ...

    def import_state(self, raw_id: str) -> DescriptorT:
        ...
