from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from threading import Lock


class VersionLockRegistry:
    """In-process mutual exclusion for changes to a single version's lesson set."""

    def __init__(self) -> None:
        self._locks: dict[str, Lock] = {}
        self._guard = Lock()

    def _lock_for(self, version_id: str) -> Lock:
        with self._guard:
            lock = self._locks.get(version_id)
            if lock is None:
                lock = Lock()
                self._locks[version_id] = lock
            return lock

    @contextmanager
    def hold(self, version_id: str) -> Iterator[None]:
        lock = self._lock_for(version_id)
        with lock:
            yield

    def clear(self) -> None:
        with self._guard:
            self._locks.clear()


version_locks = VersionLockRegistry()
