"""
Tests for fixed-window rate limiting.
"""

from datetime import datetime, timezone

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from taplog.services.rate_limit import MemoryCounterStore, RateLimiter, RedisCounterStore


class FakeClock:
    def __init__(self, start: float = 1_800_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the counter store."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.values = {}
        self.expiry_ms = {}

    def _expire_if_due(self, key):
        deadline = self.expiry_ms.get(key)
        if deadline is not None and self.clock() * 1000 >= deadline:
            self.values.pop(key, None)
            self.expiry_ms.pop(key, None)

    async def incr(self, key):
        self._expire_if_due(key)
        self.values[key] = self.values.get(key, 0) + 1
        return self.values[key]

    async def pexpire(self, key, ms):
        self.expiry_ms[key] = self.clock() * 1000 + ms
        return True

    async def pttl(self, key):
        self._expire_if_due(key)
        if key not in self.values:
            return -2
        if key not in self.expiry_ms:
            return -1
        return int(self.expiry_ms[key] - self.clock() * 1000)


class BrokenRedis:
    async def incr(self, key):
        raise RedisConnectionError("connection refused")


@pytest.fixture
def clock():
    return FakeClock()


class TestMemoryLimiter:
    async def test_thirty_first_call_rejected(self, clock):
        limiter = RateLimiter(MemoryCounterStore(clock), limit=30, window_seconds=3600)

        results = [await limiter.hit("ai:user-1") for _ in range(31)]

        assert all(r.success for r in results[:30])
        assert results[30].success is False
        assert results[30].remaining == 0
        now = datetime.fromtimestamp(clock(), tz=timezone.utc)
        assert results[30].reset >= now
        assert results[29].remaining == 0
        assert results[0].remaining == 29

    async def test_window_starts_at_first_hit(self, clock):
        limiter = RateLimiter(MemoryCounterStore(clock), limit=2, window_seconds=60)

        first = await limiter.hit("k")
        clock.now += 30
        await limiter.hit("k")

        assert first.reset == datetime.fromtimestamp(clock.now - 30 + 60, tz=timezone.utc)
        assert (await limiter.hit("k")).success is False

        clock.now += 31
        again = await limiter.hit("k")
        assert again.success is True
        assert again.remaining == 1

    async def test_keys_are_independent(self, clock):
        limiter = RateLimiter(MemoryCounterStore(clock), limit=1, window_seconds=60)

        assert (await limiter.hit("ai:a")).success
        assert (await limiter.hit("ai:b")).success
        assert not (await limiter.hit("ai:a")).success

    async def test_expired_windows_are_swept(self, clock):
        store = MemoryCounterStore(clock, sweep_every=1)
        limiter = RateLimiter(store, limit=5, window_seconds=60)

        await limiter.hit("ai:idle")
        await limiter.hit("ai:busy")
        assert len(store) == 2

        clock.now += 61
        await limiter.hit("ai:busy")

        assert len(store) == 1
        assert (await limiter.hit("ai:idle")).remaining == 4

    async def test_live_windows_survive_sweep(self, clock):
        store = MemoryCounterStore(clock, sweep_every=2)
        limiter = RateLimiter(store, limit=2, window_seconds=60)

        await limiter.hit("k")
        await limiter.hit("k")
        clock.now += 30

        assert (await limiter.hit("k")).success is False
        assert len(store) == 1

    async def test_retry_after_rounds_up(self, clock):
        limiter = RateLimiter(MemoryCounterStore(clock), limit=1, window_seconds=60)
        await limiter.hit("k")
        clock.now += 10.5

        denied = await limiter.hit("k")

        now = datetime.fromtimestamp(clock(), tz=timezone.utc)
        assert denied.retry_after_seconds(now) == 50


class TestRedisLimiter:
    async def test_counts_in_redis(self, clock):
        fake = FakeRedis(clock)
        limiter = RateLimiter(RedisCounterStore(lambda: fake, clock=clock), limit=2, window_seconds=60)

        assert (await limiter.hit("ai:u")).success
        assert (await limiter.hit("ai:u")).success
        denied = await limiter.hit("ai:u")

        assert denied.success is False
        assert fake.values == {"taplog:ratelimit:ai:u": 3}
        assert denied.reset == datetime.fromtimestamp(clock() + 60, tz=timezone.utc)

    async def test_window_expires(self, clock):
        fake = FakeRedis(clock)
        limiter = RateLimiter(RedisCounterStore(lambda: fake, clock=clock), limit=1, window_seconds=60)

        await limiter.hit("k")
        clock.now += 61

        assert (await limiter.hit("k")).success is True

    async def test_falls_back_to_memory_when_redis_down(self, clock):
        limiter = RateLimiter(RedisCounterStore(lambda: BrokenRedis(), clock=clock), limit=1, window_seconds=60)

        assert (await limiter.hit("k")).success is True
        assert (await limiter.hit("k")).success is False
