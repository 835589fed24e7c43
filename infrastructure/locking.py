"""Per-reservation mutual exclusion"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from domain.exceptions import ConcurrentModificationError

logger = logging.getLogger(__name__)


class ReservationLockRegistry:
    """One asyncio.Lock per reservation ID, created on demand.

    Mutations on different reservations never wait on each other. A lock is
    dropped once no request holds or waits for it.
    """

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def _checkout(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._users[key] = self._users.get(key, 0) + 1
        return lock

    def _release(self, key: str) -> None:
        self._users[key] -= 1
        if self._users[key] == 0:
            del self._users[key]
            del self._locks[key]

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Serialize the enclosed block against other holders of ``key``"""
        lock = self._checkout(key)
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout_seconds)
            except asyncio.TimeoutError:
                logger.warning("Timed out waiting for lock on %s", key)
                raise ConcurrentModificationError(
                    f"Reservation {key} is busy; try again"
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._release(key)

    def active_keys(self) -> int:
        return len(self._locks)
