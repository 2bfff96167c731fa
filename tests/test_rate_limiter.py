"""Rate limiter implementations and client key derivation."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from generation.rate_limiter import (
    ANONYMOUS_KEY,
    AllowAllRateLimiter,
    InMemoryRateLimiter,
    RedisRateLimiter,
    build_rate_limiter,
    client_key_from_headers,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestClientKey:

    def test_uses_header(self):
        assert client_key_from_headers({"cf-connecting-ip": "203.0.113.9"}, "cf-connecting-ip") == "203.0.113.9"

    def test_first_hop_of_forwarded_list(self):
        headers = {"x-forwarded-for": "203.0.113.9, 10.0.0.1"}

        assert client_key_from_headers(headers, "X-Forwarded-For") == "203.0.113.9"

    @pytest.mark.parametrize("headers", [{}, {"cf-connecting-ip": ""}, {"cf-connecting-ip": " , "}])
    def test_falls_back_to_anonymous(self, headers):
        assert client_key_from_headers(headers, "cf-connecting-ip") == ANONYMOUS_KEY


class TestInMemoryRateLimiter:

    def test_allows_up_to_limit_then_rejects(self):
        limiter = InMemoryRateLimiter(limit=2, window_seconds=60, clock=FakeClock())

        results = [asyncio.run(limiter.admit("a")) for _ in range(3)]

        assert results == [True, True, False]

    def test_keys_are_independent(self):
        limiter = InMemoryRateLimiter(limit=1, window_seconds=60, clock=FakeClock())

        assert asyncio.run(limiter.admit("a")) is True
        assert asyncio.run(limiter.admit("b")) is True
        assert asyncio.run(limiter.admit("a")) is False

    def test_window_resets(self):
        clock = FakeClock()
        limiter = InMemoryRateLimiter(limit=1, window_seconds=60, clock=clock)

        assert asyncio.run(limiter.admit("a")) is True
        assert asyncio.run(limiter.admit("a")) is False
        clock.now += 60
        assert asyncio.run(limiter.admit("a")) is True

    def test_rejects_bad_configuration(self):
        with pytest.raises(ValueError):
            InMemoryRateLimiter(limit=0, window_seconds=60)


class TestRedisRateLimiter:

    def _redis(self, count):
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[True, count])
        redis = MagicMock()
        redis.pipeline.return_value = pipe
        return redis, pipe

    def test_opens_window_and_counts(self):
        redis, pipe = self._redis(count=1)
        limiter = RedisRateLimiter(redis, limit=5, window_seconds=60)

        assert asyncio.run(limiter.admit("203.0.113.9")) is True

        key = "rate_limit:generate-paper:203.0.113.9"
        pipe.set.assert_called_once_with(key, 0, ex=60, nx=True)
        pipe.incr.assert_called_once_with(key)

    def test_over_limit_rejected(self):
        redis, _ = self._redis(count=6)
        limiter = RedisRateLimiter(redis, limit=5, window_seconds=60)

        assert asyncio.run(limiter.admit("anonymous")) is False

    def test_connection_errors_propagate(self):
        redis, pipe = self._redis(count=1)
        pipe.execute = AsyncMock(side_effect=ConnectionError("refused"))
        limiter = RedisRateLimiter(redis, limit=5, window_seconds=60)

        with pytest.raises(ConnectionError):
            asyncio.run(limiter.admit("anonymous"))


class TestBuildRateLimiter:

    def test_memory(self):
        assert isinstance(build_rate_limiter("memory", 3, 60), InMemoryRateLimiter)

    def test_redis_uses_given_connection(self):
        redis = MagicMock()

        limiter = build_rate_limiter("redis", 3, 60, redis=redis)

        assert isinstance(limiter, RedisRateLimiter)
        assert limiter.redis is redis

    def test_none(self):
        limiter = build_rate_limiter("none", 3, 60)

        assert isinstance(limiter, AllowAllRateLimiter)
        assert asyncio.run(limiter.admit("anyone")) is True

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_rate_limiter("memcached", 3, 60)
