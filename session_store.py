"""Persisted browser session (Playwright storage state) and its lock file."""

import asyncio
import json
import os
import time
import uuid

from errors import ConfigError, SessionBusyError


class SessionStore:
    """Reads and writes the storage state JSON (cookies + local storage)."""

    def __init__(self, path: str):
        self.path = path

    def has_session(self) -> bool:
        return os.path.exists(self.path)

    def load(self) -> dict:
        if not self.has_session():
            raise ConfigError("No saved session found. Run 'abacus login' first.", path=self.path)
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def save(self, state: dict) -> None:
        """Overwrite the session atomically so readers never see half a file."""
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        tmp_path = f"{self.path}.{os.getpid()}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2)
        os.replace(tmp_path, self.path)


class SessionLock:
    """Exclusive lock file held while a browser session is open.

    Keeps the scheduled refresh and a user command from writing the session
    at the same time. The holder calls ``touch`` while its session runs; a
    lock not touched for ``stale_after`` seconds is assumed to belong to a
    crashed process and is taken over. The file records an owner token so a
    holder never removes a lock that was taken over from it.
    """

    def __init__(self, path: str, stale_after: float = 600.0):
        self.path = path
        self.stale_after = stale_after
        self.owner = f"{os.getpid()}:{uuid.uuid4().hex}"
        self._held = False

    def _is_stale(self) -> bool:
        try:
            return time.time() - os.path.getmtime(self.path) > self.stale_after
        except FileNotFoundError:
            return True

    def try_acquire(self) -> bool:
        os.makedirs(os.path.dirname(self.path) or ".", exist_ok=True)
        for _ in range(2):
            try:
                fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                if not self._is_stale():
                    return False
                try:
                    os.remove(self.path)
                except FileNotFoundError:
                    pass
                continue
            with os.fdopen(fd, "w") as f:
                f.write(self.owner)
            self._held = True
            return True
        return False

    async def acquire(self, wait: float = 60.0, poll: float = 0.5) -> None:
        deadline = time.monotonic() + wait
        while not self.try_acquire():
            if time.monotonic() >= deadline:
                raise SessionBusyError("Another Abacus session is running. Try again shortly.", lock=self.path)
            await asyncio.sleep(poll)

    def owns(self) -> bool:
        try:
            with open(self.path, encoding="utf-8") as f:
                return f.read().strip() == self.owner
        except FileNotFoundError:
            return False

    def touch(self) -> None:
        """Mark a held lock as alive."""
        if self._held and self.owns():
            os.utime(self.path)

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        if not self.owns():
            return
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
