"""
Redis cache layer for finished reports.

Values are stored as JSON under a namespace prefix with a fixed TTL, so
Redis itself evicts stale entries. A TTL of 0 disables the cache and no
connection is ever opened.

Cache errors never fail a request: a read error is a miss, a write error
is logged and ignored.

Usage:
    from livability.app.core.cache import ReportCache

    cache = ReportCache(settings.REDIS_URL, ttl=settings.REPORT_CACHE_TTL)
    await cache.set("lisbon:current", report.to_dict())
    cached = await cache.get("lisbon:current")
    await cache.close()
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class ReportCache:
    """Namespaced, TTL-bound JSON cache on a lazily created Redis client."""

    def __init__(
        self,
        url: str,
        ttl: int,
        *,
        prefix: str = "report",
        client: Optional[aioredis.Redis] = None,
    ):
        self.url = url
        self.ttl = ttl
        self.prefix = prefix
        self._client = client

    @property
    def enabled(self) -> bool:
        return self.ttl > 0

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def _redis(self) -> aioredis.Redis:
        if self._client is None:
            self._client = aioredis.from_url(
                self.url, encoding="utf-8", decode_responses=True,
            )
            logger.info("Report cache on %s (ttl=%ds)", self.url, self.ttl)
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """Cached value, or None on miss, error or when disabled."""
        if not self.enabled:
            return None
        try:
            raw = await self._redis().get(self._key(key))
            if raw is not None:
                return json.loads(raw)
        except (RedisError, OSError, ValueError) as e:
            logger.warning("Cache GET error for %s: %s", key, e)
        return None

    async def set(self, key: str, value: Any) -> bool:
        if not self.enabled:
            return False
        try:
            await self._redis().set(
                self._key(key), json.dumps(value, default=str), ex=self.ttl,
            )
            return True
        except (RedisError, OSError, TypeError) as e:
            logger.warning("Cache SET error for %s: %s", key, e)
            return False

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
