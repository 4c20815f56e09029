"""
TTL cache and single-flight gate for the ranking pipeline.

The gate keeps at most one in-flight task per key. The task is registered
before the caller's first suspension point, so every coroutine scheduled
while it runs attaches to the same task instead of starting its own fetch.
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class TTLCache(Generic[T]):
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, T]] = {}

    def get(self, key: str) -> Optional[T]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: T, ttl_seconds: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            return
        self._entries[key] = (self._clock() + ttl, value)

    def clear(self) -> None:
        self._entries.clear()


class SingleFlight:
    def __init__(self):
        self._inflight: Dict[str, asyncio.Task] = {}

    def inflight(self, key: str) -> Optional[asyncio.Task]:
        return self._inflight.get(key)

    def start(self, key: str, factory: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        """Return the running task for ``key`` or start one from ``factory``."""
        task = self._inflight.get(key)
        if task is not None:
            return task

        async def run():
            try:
                return await factory()
            finally:
                if self._inflight.get(key) is asyncio.current_task():
                    del self._inflight[key]

        task = asyncio.ensure_future(run())
        self._inflight[key] = task
        return task

    async def run(self, key: str, factory: Callable[[], Awaitable[T]]) -> T:
        # shield: a cancelled caller must not cancel the work other callers share
        return await asyncio.shield(self.start(key, factory))

    def clear(self) -> None:
        self._inflight.clear()
