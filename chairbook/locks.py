"""
Per-day asyncio locks.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

from .domain.intervals import DayKey


class DayLocks:
    """
    One ``asyncio.Lock`` per day key.

    A lock is created on first use and dropped as soon as no coroutine holds
    or waits for it, so a long-running process keeps no entry per past day.
    """

    def __init__(self) -> None:
        self._locks: Dict[DayKey, asyncio.Lock] = {}
        self._users: Dict[DayKey, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, day: DayKey) -> AsyncIterator[None]:
        lock = self._locks.get(day)
        if lock is None:
            lock = self._locks[day] = asyncio.Lock()
        self._users[day] = self._users.get(day, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[day] -= 1
            if not self._users[day]:
                del self._users[day]
                del self._locks[day]
