"""Catalog locks.

One readers-writer lock per logical target database serializes catalog
work done by every resource kind against that database:

- Writers (create, update, delete, exists) hold the lock exclusively.
- Readers (read) share it with each other, never with a writer.

Waiting writers block new readers, so a steady stream of reads cannot
starve a pending write. Locks are not reentrant.

Usage:
    lock = get_catalog_lock(ctx.target)

    with lock.exclusive():
        ...  # DDL

    with lock.shared():
        ...  # catalog query
"""

import threading
from contextlib import contextmanager
from typing import Generator, Optional


class CatalogLock:
    """Readers-writer lock guarding one target database's catalog."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    def __repr__(self) -> str:
        return (
            f"CatalogLock(name={self.name!r}, readers={self._readers}, "
            f"writer={self._writer})"
        )

    def acquire_shared(self) -> None:
        """Block until the lock can be held in shared mode."""
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_shared(self) -> None:
        """Release one shared hold."""
        with self._cond:
            if self._readers == 0:
                raise RuntimeError(f"Catalog lock {self.name!r} is not held in shared mode")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_exclusive(self) -> None:
        """Block until the lock can be held in exclusive mode."""
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True

    def release_exclusive(self) -> None:
        """Release the exclusive hold."""
        with self._cond:
            if not self._writer:
                raise RuntimeError(f"Catalog lock {self.name!r} is not held in exclusive mode")
            self._writer = False
            self._cond.notify_all()

    @contextmanager
    def shared(self) -> Generator[None, None, None]:
        """Hold the lock in shared mode for the duration of the block."""
        self.acquire_shared()
        try:
            yield
        finally:
            self.release_shared()

    @contextmanager
    def exclusive(self) -> Generator[None, None, None]:
        """Hold the lock in exclusive mode for the duration of the block."""
        self.acquire_exclusive()
        try:
            yield
        finally:
            self.release_exclusive()

    @property
    def readers(self) -> int:
        """Number of current shared holders."""
        with self._cond:
            return self._readers

    @property
    def is_exclusive(self) -> bool:
        """True while a writer holds the lock."""
        with self._cond:
            return self._writer


class CatalogLockRegistry:
    """Hands out one CatalogLock per target database key."""

    def __init__(self) -> None:
        self._locks: dict[str, CatalogLock] = {}
        self._guard = threading.Lock()

    def for_target(self, key: str) -> CatalogLock:
        """Get (or create) the lock for a target key such as "host:5432/db"."""
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = CatalogLock(name=key)
                self._locks[key] = lock
            return lock

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Process-wide registry
_registry: Optional[CatalogLockRegistry] = None


def get_lock_registry() -> CatalogLockRegistry:
    """Get or create the process-wide lock registry."""
    global _registry
    if _registry is None:
        _registry = CatalogLockRegistry()
    return _registry


def get_catalog_lock(key: str) -> CatalogLock:
    """Get the process-wide catalog lock for a target database key."""
    return get_lock_registry().for_target(key)
