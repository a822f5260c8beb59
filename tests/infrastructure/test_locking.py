"""Tests for RowLockManager and FileRowLockManager."""

import threading

import pytest

from backoffice.domain.exceptions import Contention
from backoffice.infrastructure.locking import FileRowLockManager, RowLockManager


class TestRowLockManager:

    def test_acquire_returns_sorted_unique_keys(self):
        locks = RowLockManager()
        taken = locks.acquire(["product:b", "product:a", "product:b"], timeout=0.1)
        assert taken == ["product:a", "product:b"]
        locks.release(taken)

    def test_released_keys_can_be_taken_again(self):
        locks = RowLockManager()
        locks.release(locks.acquire(["k"], timeout=0.1))
        locks.release(locks.acquire(["k"], timeout=0.1))

    def test_timeout_raises_contention(self):
        locks = RowLockManager()
        held = locks.acquire(["k"], timeout=0.1)
        with pytest.raises(Contention, match="Timed out waiting for k"):
            locks.acquire(["k"], timeout=0.05)
        locks.release(held)

    def test_failed_batch_gives_back_what_it_took(self):
        locks = RowLockManager()
        held = locks.acquire(["b"], timeout=0.1)

        with pytest.raises(Contention):
            locks.acquire(["a", "b"], timeout=0.05)

        # "a" must be free again
        locks.release(locks.acquire(["a"], timeout=0.05))
        locks.release(held)

    def test_waiter_gets_lock_when_released(self):
        locks = RowLockManager()
        held = locks.acquire(["k"], timeout=0.1)
        got = []

        def waiter():
            got.extend(locks.acquire(["k"], timeout=2.0))

        thread = threading.Thread(target=waiter)
        thread.start()
        locks.release(held)
        thread.join(timeout=2.0)

        assert got == ["k"]
        locks.release(got)

    def test_released_keys_are_forgotten(self):
        locks = RowLockManager()
        locks.release(locks.acquire([f"sale:{n}" for n in range(100)], timeout=0.1))
        assert len(locks) == 0

    def test_timed_out_waiter_is_forgotten(self):
        locks = RowLockManager()
        held = locks.acquire(["k"], timeout=0.1)
        with pytest.raises(Contention):
            locks.acquire(["k"], timeout=0.01)
        assert len(locks) == 1
        locks.release(held)
        assert len(locks) == 0


class TestFileRowLockManager:

    def test_separate_managers_exclude_each_other(self, tmp_path):
        # Two managers stand in for two processes sharing a data directory.
        first = FileRowLockManager(tmp_path / "locks")
        second = FileRowLockManager(tmp_path / "locks")

        held = first.acquire(["product:p1"], timeout=0.1)
        with pytest.raises(Contention, match="product:p1"):
            second.acquire(["product:p1"], timeout=0.05)

        first.release(held)
        second.release(second.acquire(["product:p1"], timeout=0.1))

    def test_failed_batch_releases_file_locks(self, tmp_path):
        first = FileRowLockManager(tmp_path)
        second = FileRowLockManager(tmp_path)
        held = first.acquire(["b"], timeout=0.1)

        with pytest.raises(Contention):
            second.acquire(["a", "b"], timeout=0.05)

        first.release(first.acquire(["a"], timeout=0.05))
        first.release(held)
        assert len(second) == 0

    def test_any_key_maps_to_a_lock_file(self, tmp_path):
        locks = FileRowLockManager(tmp_path / "locks")
        locks.release(locks.acquire(["sku:VASO 01/azul"], timeout=0.1))
        assert len(list((tmp_path / "locks").glob("*.lock"))) == 1
