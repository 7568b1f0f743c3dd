from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from core.logging import logger

from .exceptions import Busy


class SessionLocks:
    """In-process mutual exclusion for the mutations of one dive session.

    The lock is held for the whole transaction, commit included, so checks
    made inside it cannot be invalidated by another request of this process.
    A session's lock only lives while someone holds or waits for it.
    """

    def __init__(self, timeout: float = 10.0) -> None:
        self.timeout = timeout
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}
        self._loop: asyncio.AbstractEventLoop | None = None

    def __len__(self) -> int:
        return len(self._locks)

    def _lock_for(self, session_id: int) -> asyncio.Lock:
        loop = asyncio.get_running_loop()
        if loop is not self._loop:
            # locks are bound to the loop that first waits on them
            if self._locks:
                logger.bind(event="lock_registry_reset", sessions=sorted(self._locks)).warning(
                    "Dropping {} session locks left by a closed event loop", len(self._locks)
                )
            self._locks = {}
            self._users = {}
            self._loop = loop
        return self._locks.setdefault(session_id, asyncio.Lock())

    def _release_user(self, session_id: int) -> None:
        remaining = self._users.get(session_id, 1) - 1
        if remaining > 0:
            self._users[session_id] = remaining
            return
        self._users.pop(session_id, None)
        self._locks.pop(session_id, None)

    @asynccontextmanager
    async def hold(self, session_id: int, timeout: float | None = None) -> AsyncIterator[None]:
        lock = self._lock_for(session_id)
        self._users[session_id] = self._users.get(session_id, 0) + 1
        wait = self.timeout if timeout is None else timeout
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=wait)
            except asyncio.TimeoutError as exc:
                logger.bind(event="lock_timeout", session_id=session_id).warning(
                    "Could not lock session {} within {}s", session_id, wait
                )
                raise Busy(f"Session {session_id} is being edited, try again") from exc
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release_user(session_id)

    def locked(self, session_id: int) -> bool:
        lock = self._locks.get(session_id)
        return bool(lock and lock.locked())
