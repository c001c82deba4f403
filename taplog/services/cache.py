"""
Shared Redis connection pool.

Local dev:   leave REDIS_URL empty (rate limiting stays in-process)
Production:  Upstash or Render Redis, set REDIS_URL in .env
"""
from __future__ import annotations

import logging
from typing import Optional

from redis.asyncio import ConnectionPool, Redis

from taplog.core.config import settings

logger = logging.getLogger(__name__)

# ── Single connection pool shared across the whole app ────────────────────────
_pool: Optional[ConnectionPool] = None


def _get_pool() -> ConnectionPool:
    global _pool
    if _pool is None:
        _pool = ConnectionPool.from_url(
            settings.REDIS_URL,
            max_connections=20,
            decode_responses=True,
        )
    return _pool


def redis_configured() -> bool:
    return bool(settings.REDIS_URL)


def get_redis() -> Redis:
    return Redis(connection_pool=_get_pool())


def namespaced(namespace: str, key: str) -> str:
    return f"taplog:{namespace}:{key}"
