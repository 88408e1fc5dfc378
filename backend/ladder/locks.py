from __future__ import annotations

from asyncio import Lock
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any


class KeyedLocks:
    """Hand out one ``asyncio.Lock`` per key.

    Entries are dropped once no task holds or waits on them, so the registry
    does not grow with every match day ever finalized. Bookkeeping happens
    between awaits and needs no lock of its own.
    """

    def __init__(self) -> None:
        self._locks: dict[Any, tuple[Lock, int]] = {}

    @asynccontextmanager
    async def hold(self, key: Any) -> AsyncIterator[None]:
        lock, users = self._locks.get(key, (None, 0))
        if lock is None:
            lock = Lock()
        self._locks[key] = (lock, users + 1)

        try:
            async with lock:
                yield
        finally:
            _, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    def is_held(self, key: Any) -> bool:
        entry = self._locks.get(key)
        return entry is not None and entry[0].locked()

    def __len__(self) -> int:
        return len(self._locks)


match_day_locks = KeyedLocks()


def match_day_lock(match_day_id: str):
    """Serialize work on a single match day within this process."""

    return match_day_locks.hold(match_day_id)
