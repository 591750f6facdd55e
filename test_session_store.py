"""Tests for the saved session file and the session lock."""

import asyncio
import os
import time

import pytest

from errors import ConfigError, SessionBusyError
from session_store import SessionLock, SessionStore


class TestSessionStore:

    def test_missing_session(self, tmp_path):
        store = SessionStore(str(tmp_path / "state.json"))
        assert not store.has_session()
        with pytest.raises(ConfigError, match="abacus login"):
            store.load()

    def test_save_and_load(self, tmp_path):
        store = SessionStore(str(tmp_path / "state.json"))
        state = {"cookies": [{"name": "JSESSIONID", "value": "abc"}], "origins": []}
        store.save(state)
        assert store.load() == state
        # No temp file left behind
        assert os.listdir(tmp_path) == ["state.json"]


class TestSessionLock:

    def test_exclusive(self, tmp_path):
        path = str(tmp_path / "session.lock")
        first, second = SessionLock(path), SessionLock(path)
        assert first.try_acquire()
        assert not second.try_acquire()
        first.release()
        assert second.try_acquire()
        second.release()
        assert not os.path.exists(path)

    def test_stale_lock_taken_over(self, tmp_path):
        path = tmp_path / "session.lock"
        path.write_text("12345")
        old = time.time() - 3600
        os.utime(path, (old, old))
        lock = SessionLock(str(path))
        assert lock.try_acquire()
        lock.release()

    def test_release_only_own_lock(self, tmp_path):
        path = str(tmp_path / "session.lock")
        holder, other = SessionLock(path), SessionLock(path)
        assert holder.try_acquire()
        other.release()
        assert os.path.exists(path)
        holder.release()

    def test_touched_lock_is_not_stale(self, tmp_path):
        path = str(tmp_path / "session.lock")
        holder = SessionLock(path)
        assert holder.try_acquire()
        old = time.time() - 660
        os.utime(path, (old, old))
        holder.touch()
        assert not SessionLock(path).try_acquire()
        holder.release()

    def test_taken_over_lock_survives_old_holder(self, tmp_path):
        path = str(tmp_path / "session.lock")
        holder, successor = SessionLock(path), SessionLock(path)
        assert holder.try_acquire()
        old = time.time() - 660
        os.utime(path, (old, old))
        assert successor.try_acquire()

        holder.touch()
        holder.release()
        assert successor.owns()
        successor.release()
        assert not os.path.exists(path)

    def test_acquire_times_out(self, tmp_path):
        path = str(tmp_path / "session.lock")
        holder = SessionLock(path)
        assert holder.try_acquire()
        with pytest.raises(SessionBusyError):
            asyncio.run(SessionLock(path).acquire(wait=0.05, poll=0.01))
        holder.release()

    def test_acquire_waits_for_release(self, tmp_path):
        path = str(tmp_path / "session.lock")
        holder = SessionLock(path)
        assert holder.try_acquire()

        async def scenario():
            waiter = SessionLock(path)
            task = asyncio.ensure_future(waiter.acquire(wait=2.0, poll=0.01))
            await asyncio.sleep(0.05)
            holder.release()
            await task
            return waiter

        waiter = asyncio.run(scenario())
        assert os.path.exists(path)
        waiter.release()
