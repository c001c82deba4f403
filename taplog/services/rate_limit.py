"""
Fixed-window rate limiting.

Each key gets one window that opens on its first hit and lasts
``window_seconds``; hits beyond ``limit`` inside the window are refused until
it closes. Counters live in a pluggable store: an in-process dict for a single
instance, Redis when several instances must share quota. This is abuse
mitigation, so counts are best effort and may reset on restart.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Callable, Dict, Optional, Protocol, Tuple

from redis.asyncio import Redis
from redis.exceptions import RedisError

from taplog.core.config import settings
from taplog.services.cache import get_redis, namespaced, redis_configured

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitResult:
    success: bool
    limit: int
    remaining: int
    reset: datetime

    def retry_after_seconds(self, now: Optional[datetime] = None) -> int:
        now = now or datetime.now(timezone.utc)
        return max(0, math.ceil((self.reset - now).total_seconds()))


class CounterStore(Protocol):
    async def increment(self, key: str, window_ms: int) -> Tuple[int, int]:
        """Count one hit; return (count in window, window reset as epoch ms)."""
        ...


class MemoryCounterStore:
    """
    Process-local counters. Every ``sweep_every`` hits, windows that have
    already closed are dropped so idle keys do not pile up.
    """

    def __init__(self, clock: Callable[[], float] = time.time, sweep_every: int = 500):
        self._clock = clock
        self._slots: Dict[str, Tuple[int, int]] = {}
        self._lock = threading.Lock()
        self._sweep_every = max(1, sweep_every)
        self._hits = 0

    def __len__(self) -> int:
        return len(self._slots)

    def _sweep(self, now_ms: int) -> None:
        expired = [k for k, (_, reset_at) in self._slots.items() if now_ms > reset_at]
        for k in expired:
            del self._slots[k]
        if expired:
            logger.debug("[ratelimit] dropped %d expired windows", len(expired))

    async def increment(self, key: str, window_ms: int) -> Tuple[int, int]:
        now_ms = int(self._clock() * 1000)
        with self._lock:
            self._hits += 1
            if self._hits % self._sweep_every == 0:
                self._sweep(now_ms)
            count, reset_at = self._slots.get(key, (0, 0))
            if count == 0 or now_ms > reset_at:
                count, reset_at = 0, now_ms + window_ms
            count += 1
            self._slots[key] = (count, reset_at)
            return count, reset_at


class RedisCounterStore:
    """INCR + PEXPIRE on first hit; falls back to memory while Redis is down."""

    def __init__(
        self,
        redis_factory: Callable[[], Redis] = get_redis,
        fallback: Optional[MemoryCounterStore] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._redis_factory = redis_factory
        self._fallback = fallback if fallback is not None else MemoryCounterStore(clock)
        self._clock = clock

    async def increment(self, key: str, window_ms: int) -> Tuple[int, int]:
        redis_key = namespaced("ratelimit", key)
        try:
            r = self._redis_factory()
            count = await r.incr(redis_key)
            if count == 1:
                await r.pexpire(redis_key, window_ms)
            ttl_ms = await r.pttl(redis_key)
            if ttl_ms < 0:
                # key lost its expiry, restart the window
                await r.pexpire(redis_key, window_ms)
                ttl_ms = window_ms
            return int(count), int(self._clock() * 1000) + int(ttl_ms)
        except (RedisError, OSError) as exc:
            logger.warning("[ratelimit] redis unavailable, counting in-process: %s", exc)
            return await self._fallback.increment(key, window_ms)


class RateLimiter:
    def __init__(self, store: CounterStore, limit: int = 30, window_seconds: int = 3600):
        self.store = store
        self.limit = limit
        self.window_ms = window_seconds * 1000

    async def hit(self, key: str) -> RateLimitResult:
        count, reset_ms = await self.store.increment(key, self.window_ms)
        reset = datetime.fromtimestamp(reset_ms / 1000, tz=timezone.utc)
        success = count <= self.limit
        if not success:
            logger.info("[ratelimit] %s over limit (%d/%d)", key, count, self.limit)
        return RateLimitResult(
            success=success,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset=reset,
        )


@lru_cache
def get_rate_limiter() -> RateLimiter:
    store: CounterStore = RedisCounterStore() if redis_configured() else MemoryCounterStore()
    return RateLimiter(
        store,
        limit=settings.RATE_LIMIT_MAX,
        window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
    )
