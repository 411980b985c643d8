"""Unit tests for catalog locks."""

import threading
import time

import pytest

from pgstate.core.locking import (
    CatalogLock,
    CatalogLockRegistry,
    get_catalog_lock,
    get_lock_registry,
)


def _start(target) -> threading.Thread:
    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread


class TestCatalogLock:
    """Tests for the readers-writer lock."""

    def test_shared_holders_coexist(self):
        """Several readers can hold the lock at once."""
        lock = CatalogLock()
        with lock.shared():
            with lock.shared():
                assert lock.readers == 2
        assert lock.readers == 0

    def test_exclusive_flag(self):
        lock = CatalogLock()
        with lock.exclusive():
            assert lock.is_exclusive
        assert not lock.is_exclusive

    def test_writer_waits_for_reader(self):
        """A writer cannot enter while a reader holds the lock."""
        lock = CatalogLock()
        acquired = threading.Event()

        def writer():
            with lock.exclusive():
                acquired.set()

        lock.acquire_shared()
        thread = _start(writer)
        assert not acquired.wait(0.1)

        lock.release_shared()
        assert acquired.wait(2)
        thread.join(2)

    def test_reader_waits_for_writer(self):
        """A reader cannot enter while a writer holds the lock."""
        lock = CatalogLock()
        acquired = threading.Event()

        def reader():
            with lock.shared():
                acquired.set()

        lock.acquire_exclusive()
        thread = _start(reader)
        assert not acquired.wait(0.1)

        lock.release_exclusive()
        assert acquired.wait(2)
        thread.join(2)

    def test_writers_serialize(self):
        """Exclusive sections never overlap."""
        lock = CatalogLock()
        inside = 0
        overlaps = []

        def writer():
            nonlocal inside
            for _ in range(20):
                with lock.exclusive():
                    inside += 1
                    if inside > 1:
                        overlaps.append(inside)
                    time.sleep(0.001)
                    inside -= 1

        threads = [_start(writer) for _ in range(4)]
        for thread in threads:
            thread.join(10)

        assert overlaps == []

    def test_waiting_writer_blocks_new_readers(self):
        """New readers queue behind a writer that is already waiting."""
        lock = CatalogLock()
        order: list[str] = []

        def writer():
            with lock.exclusive():
                order.append("writer")

        def reader():
            with lock.shared():
                order.append("reader")

        lock.acquire_shared()
        writer_thread = _start(writer)
        time.sleep(0.05)
        reader_thread = _start(reader)
        time.sleep(0.05)
        assert order == []

        lock.release_shared()
        writer_thread.join(2)
        reader_thread.join(2)
        assert order == ["writer", "reader"]

    def test_released_on_exception(self):
        """Leaving the block through an exception releases the lock."""
        lock = CatalogLock()

        with pytest.raises(ValueError):
            with lock.exclusive():
                raise ValueError("boom")
        assert not lock.is_exclusive

        with pytest.raises(ValueError):
            with lock.shared():
                raise ValueError("boom")
        assert lock.readers == 0

    def test_release_without_acquire(self):
        lock = CatalogLock(name="db")
        with pytest.raises(RuntimeError):
            lock.release_shared()
        with pytest.raises(RuntimeError):
            lock.release_exclusive()


class TestCatalogLockRegistry:
    """Tests for per-target lock lookup."""

    def test_same_key_same_lock(self):
        registry = CatalogLockRegistry()
        assert registry.for_target("h:5432/a") is registry.for_target("h:5432/a")
        assert len(registry) == 1

    def test_different_keys_different_locks(self):
        registry = CatalogLockRegistry()
        a = registry.for_target("h:5432/a")
        b = registry.for_target("h:5432/b")
        assert a is not b
        assert b.name == "h:5432/b"

    def test_process_registry(self):
        assert get_catalog_lock("x:1/y") is get_lock_registry().for_target("x:1/y")
