"""
Admission control for POST /generate-paper.

The gateway only sees the RateLimiter protocol (admit(key) -> bool) and
receives an implementation at construction time:
  - InMemoryRateLimiter  — fixed window per key, single process
  - RedisRateLimiter     — fixed window per key, shared through Redis
  - AllowAllRateLimiter  — no limiting
"""

import asyncio
import logging
import time
from typing import Dict, Mapping, Protocol, Tuple

from database.redis_client import get_redis, rate_limit_key

log = logging.getLogger("generation.rate_limiter")

ANONYMOUS_KEY = "anonymous"
RATE_LIMIT_SCOPE = "generate-paper"


class RateLimiter(Protocol):
    name: str

    async def admit(self, key: str) -> bool:
        ...


def client_key_from_headers(headers: Mapping[str, str], header_name: str) -> str:
    """
    Rate limit key for a caller: the network-origin header if present,
    otherwise the shared "anonymous" bucket.
    """
    value = headers.get(header_name) or headers.get(header_name.lower())
    if not value:
        return ANONYMOUS_KEY
    # X-Forwarded-For style lists: the first hop is the client
    first = value.split(",")[0].strip()
    return first or ANONYMOUS_KEY


# ─── In-memory ────────────────────────────────────────────────────────────────

class InMemoryRateLimiter:
    """Fixed-window counter kept in process memory."""

    name = "memory"

    def __init__(self, limit: int, window_seconds: int, clock=time.monotonic):
        if limit < 1 or window_seconds < 1:
            raise ValueError("limit and window_seconds must be >= 1")
        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}
        self._lock = asyncio.Lock()

    async def admit(self, key: str) -> bool:
        async with self._lock:
            now = self._clock()
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            self._prune(now)
        return count <= self.limit

    def _prune(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for k in expired:
            del self._windows[k]


# ─── Redis ────────────────────────────────────────────────────────────────────

class RedisRateLimiter:
    """
    Fixed-window counter in Redis. SET NX EX opens the window (only when the
    key is absent) and INCR counts within it; INCR keeps the existing TTL.
    """

    name = "redis"

    def __init__(self, redis, limit: int, window_seconds: int, scope: str = RATE_LIMIT_SCOPE):
        self.redis = redis
        self.limit = limit
        self.window_seconds = window_seconds
        self.scope = scope

    async def admit(self, key: str) -> bool:
        redis_key = rate_limit_key(self.scope, key)
        pipe = self.redis.pipeline()
        pipe.set(redis_key, 0, ex=self.window_seconds, nx=True)
        pipe.incr(redis_key)
        results = await pipe.execute()
        current = int(results[-1])
        if current > self.limit:
            log.info(f"[RATE LIMIT] {key} over budget ({current}/{self.limit})")
        return current <= self.limit


# ─── No limiting ──────────────────────────────────────────────────────────────

class AllowAllRateLimiter:
    name = "none"

    async def admit(self, key: str) -> bool:
        return True


def build_rate_limiter(
    backend: str,
    limit: int,
    window_seconds: int,
    redis=None,
) -> RateLimiter:
    """Pick the limiter implementation named by RATE_LIMIT_BACKEND."""
    if backend == "memory":
        return InMemoryRateLimiter(limit, window_seconds)
    if backend == "redis":
        if redis is None:
            redis = get_redis()
        return RedisRateLimiter(redis, limit, window_seconds)
    if backend == "none":
        return AllowAllRateLimiter()
    raise ValueError(f"Unknown RATE_LIMIT_BACKEND: {backend!r} (expected memory | redis | none)")


__all__ = [
    "ANONYMOUS_KEY",
    "RateLimiter",
    "InMemoryRateLimiter",
    "RedisRateLimiter",
    "AllowAllRateLimiter",
    "build_rate_limiter",
    "client_key_from_headers",
]
