from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator


class CourtDayLocks:
    """In-process serialization point for booking writes on one court and day.

    Held by the request handler around the whole transaction, released only
    after commit. Complements the court row lock taken inside the transaction;
    databases without ``SELECT ... FOR UPDATE`` still get one writer per process.
    """

    def __init__(self) -> None:
        self._locks: dict[tuple[str, date], asyncio.Lock] = {}
        self._waiters: dict[tuple[str, date], int] = {}

    @asynccontextmanager
    async def hold(self, court_id: str, booking_date: date) -> AsyncIterator[None]:
        key = (court_id, booking_date)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
