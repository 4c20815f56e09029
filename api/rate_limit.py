"""
Fixed-window request limiter for the public API.

Counts live in Redis when ``REDIS_URL`` is configured and reachable, so
several API workers share one budget; otherwise each process keeps its own
in-memory windows.
"""

import time
from typing import Dict, Optional, Tuple

from api.config import settings
from api.logging_config import get_logger

logger = get_logger(__name__)

MAX_MEMORY_WINDOWS = 10000


class RateLimiter:
    def __init__(
        self,
        limit: int,
        period: int,
        redis_url: Optional[str] = None,
        clock=time.time,
    ):
        self.limit = limit
        self.period = period
        self.redis_url = redis_url
        self._clock = clock
        self._redis = None
        self._redis_available: Optional[bool] = None if redis_url else False
        self._windows: Dict[str, int] = {}

    def _window(self) -> int:
        return int(self._clock()) // self.period

    def _key(self, client_key: str, window: int) -> str:
        return f"rate:{client_key}:{window}"

    def retry_after(self) -> int:
        return self.period - int(self._clock()) % self.period

    async def _get_redis(self):
        if self._redis_available is False:
            return None
        if self._redis is not None:
            return self._redis
        try:
            import redis.asyncio as redis

            client = redis.from_url(self.redis_url, encoding="utf-8", decode_responses=True)
            await client.ping()
        except Exception as e:
            self._redis_available = False
            logger.warning(f"Redis unavailable, using in-memory rate limiting: {e}")
            return None
        self._redis = client
        self._redis_available = True
        logger.info("Connected to Redis for rate limiting")
        return client

    def _hit_memory(self, rate_key: str, window: int) -> int:
        if len(self._windows) > MAX_MEMORY_WINDOWS:
            suffix = f":{window}"
            self._windows = {k: v for k, v in self._windows.items() if k.endswith(suffix)}
        count = self._windows.get(rate_key, 0) + 1
        self._windows[rate_key] = count
        return count

    async def hit(self, client_key: str) -> Tuple[bool, int]:
        """Count one request; returns ``(allowed, remaining)``."""
        window = self._window()
        rate_key = self._key(client_key, window)
        count = None

        redis = await self._get_redis()
        if redis is not None:
            try:
                pipe = redis.pipeline()
                pipe.incr(rate_key)
                pipe.expire(rate_key, self.period)
                count = (await pipe.execute())[0]
            except Exception as e:
                logger.error(f"Redis rate limit error: {e}")

        if count is None:
            count = self._hit_memory(rate_key, window)
        return count <= self.limit, max(0, self.limit - count)

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.close()
            self._redis = None
            self._redis_available = None
            logger.info("Redis connection closed")

    def reset(self) -> None:
        self._windows.clear()


rate_limiter = RateLimiter(settings.rate_limit, settings.rate_period, settings.redis_url)
