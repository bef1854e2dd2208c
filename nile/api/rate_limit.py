"""
Fixed-window rate limiting keyed by a request header (e.g. x-api-key or x-forwarded-for).
Counters live in Redis when REDIS_URL is configured, otherwise in process memory.
"""
import time
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import redis.asyncio as aioredis


@dataclass
class RateLimitDecision:
    allowed: bool
    count: int
    limit: int
    reset_at: int  # unix seconds

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)


class RateLimitStore:
    async def hit(self, key: str, window_sec: int) -> Tuple[int, int]:
        """Increment the window counter for key. Returns (count, reset_at)."""
        raise NotImplementedError


class MemoryRateLimitStore(RateLimitStore):
    """Process-local counters. Expired windows are swept at most once per sweep_interval_sec."""

    def __init__(self, sweep_interval_sec: int = 60):
        self._windows: Dict[str, Tuple[int, int]] = {}
        self.sweep_interval_sec = sweep_interval_sec
        self._next_sweep = 0

    def _sweep(self, now: int) -> None:
        expired = [k for k, (_, reset_at) in self._windows.items() if reset_at <= now]
        for k in expired:
            del self._windows[k]
        self._next_sweep = now + self.sweep_interval_sec

    async def hit(self, key: str, window_sec: int) -> Tuple[int, int]:
        now = int(time.time())
        if now >= self._next_sweep:
            self._sweep(now)
        count, reset_at = self._windows.get(key, (0, 0))
        if now >= reset_at:
            count, reset_at = 0, now + window_sec
        count += 1
        self._windows[key] = (count, reset_at)
        return count, reset_at


class RedisRateLimitStore(RateLimitStore):
    def __init__(self, r: aioredis.Redis, prefix: str = "nile:ratelimit:"):
        self.r = r
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "nile:ratelimit:") -> "RedisRateLimitStore":
        return cls(aioredis.from_url(url, decode_responses=True), prefix=prefix)

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def close(self) -> None:
        await self.r.aclose()

    async def hit(self, key: str, window_sec: int) -> Tuple[int, int]:
        k = self._key(key)
        count = int(await self.r.incr(k))
        if count == 1:
            await self.r.expire(k, window_sec)
            ttl = window_sec
        else:
            ttl = int(await self.r.ttl(k))
            if ttl < 0:
                # key lost its expiry; start a fresh window
                await self.r.expire(k, window_sec)
                ttl = window_sec
        return count, int(time.time()) + ttl


class RateLimiter:
    def __init__(self, limit: int, window_sec: int, store: Optional[RateLimitStore] = None):
        self.limit = limit
        self.window_sec = window_sec
        self.store = store if store is not None else MemoryRateLimitStore()

    async def check(self, key: str) -> RateLimitDecision:
        count, reset_at = await self.store.hit(key, self.window_sec)
        return RateLimitDecision(allowed=count <= self.limit, count=count, limit=self.limit, reset_at=reset_at)
