"""Row-level locks for the document store.

One lock per row key ("product:<id>", "sale:<id>", ...).  A batch of keys
is always taken in ascending order, and a batch that cannot be completed
before the deadline gives back what it already took and raises
``Contention``.

``RowLockManager`` only serializes threads of one process.
``FileRowLockManager`` also takes an OS file lock per key, so every
process pointed at the same lock directory sees the same row locks.
"""

from __future__ import annotations

import hashlib
import logging
import threading
import time
from collections.abc import Iterable
from pathlib import Path

from filelock import FileLock, Timeout

from backoffice.domain.exceptions import Contention

logger = logging.getLogger(__name__)


class _Entry:
    """A key's lock plus the number of threads holding or waiting for it."""

    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


class RowLockManager:

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def acquire(self, keys: Iterable[str], timeout: float) -> list[str]:
        """Lock every key or none of them.  Returns the keys in lock order."""
        ordered = sorted(set(keys))
        deadline = time.monotonic() + timeout
        taken: list[str] = []
        for key in ordered:
            if not self._take(key, max(0.0, deadline - time.monotonic())):
                self.release(taken)
                logger.warning("Timed out after %.2fs waiting for lock %s", timeout, key)
                raise Contention(f"Timed out waiting for {key}; try again")
            taken.append(key)
        return taken

    def release(self, keys: Iterable[str]) -> None:
        for key in reversed(list(keys)):
            self._give_back(key)

    def __len__(self) -> int:
        """Number of keys currently held or waited on."""
        with self._guard:
            return len(self._entries)

    def _take(self, key: str, timeout: float) -> bool:
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
        if entry.lock.acquire(timeout=timeout):
            return True
        self._drop_user(key, entry)
        return False

    def _give_back(self, key: str) -> None:
        with self._guard:
            entry = self._entries[key]
        entry.lock.release()
        self._drop_user(key, entry)

    def _drop_user(self, key: str, entry: _Entry) -> None:
        # An entry nobody holds or waits for is forgotten.
        with self._guard:
            entry.users -= 1
            if entry.users == 0:
                del self._entries[key]


class FileRowLockManager(RowLockManager):
    """Row locks shared by every process that uses *lock_dir*.

    The in-process lock is taken first, then ``<lock_dir>/<sha1(key)>.lock``.
    Lock files stay on disk after release; only the OS lock on them matters.
    """

    def __init__(self, lock_dir: Path) -> None:
        super().__init__()
        self._lock_dir = lock_dir
        self._lock_dir.mkdir(parents=True, exist_ok=True)
        self._files: dict[str, FileLock] = {}

    def _take(self, key: str, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        if not super()._take(key, timeout):
            return False
        file_lock = FileLock(str(self._path_for(key)))
        try:
            file_lock.acquire(timeout=max(0.0, deadline - time.monotonic()))
        except Timeout:
            super()._give_back(key)
            return False
        self._files[key] = file_lock
        return True

    def _give_back(self, key: str) -> None:
        self._files.pop(key).release()
        super()._give_back(key)

    def _path_for(self, key: str) -> Path:
        digest = hashlib.sha1(key.encode("utf-8")).hexdigest()
        return self._lock_dir / f"{digest}.lock"
