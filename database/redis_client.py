"""
Redis client for the shared rate limit counters.
One async connection pool per process; counters themselves live in Redis so
every worker shares the same budget.
"""

import os
from typing import Optional

import redis.asyncio as redis

# ─── Config ────────────────────────────────────────────────────────────────────

REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

_redis_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
    """Get or create the Redis connection."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(REDIS_URL, decode_responses=True)
    return _redis_client


async def close_redis() -> None:
    """Close the pool on shutdown (no-op if it was never opened)."""
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


# ─── Key helpers ───────────────────────────────────────────────────────────────

def rate_limit_key(scope: str, client_key: str) -> str:
    return f"rate_limit:{scope}:{client_key}"
