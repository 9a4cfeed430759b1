"""
Redis Cache.

JSON values with a TTL. Any Redis problem degrades to a cache miss, so
callers never depend on Redis being up. An empty URL disables caching.
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger(__name__)


class RedisCache:
    def __init__(self, url: str, client: Optional[aioredis.Redis] = None):
        self.url = url
        self._redis = client
        self._unavailable = False

    @property
    def enabled(self) -> bool:
        return bool(self.url) or self._redis is not None

    async def _client(self) -> Optional[aioredis.Redis]:
        """Lazy connect; after one failed connect the cache stays off."""
        if self._redis is not None or not self.url or self._unavailable:
            return self._redis
        try:
            client = aioredis.from_url(
                self.url,
                decode_responses=True,
                socket_connect_timeout=3,
            )
            await client.ping()
        except (aioredis.RedisError, OSError) as e:
            logger.warning("redis_unavailable", error=str(e))
            self._unavailable = True
            return None
        logger.info("redis_connected")
        self._redis = client
        return self._redis

    async def get(self, key: str) -> Optional[Any]:
        """Returns None on miss or when Redis is unavailable."""
        r = await self._client()
        if r is None:
            return None
        try:
            val = await r.get(key)
        except (aioredis.RedisError, OSError) as e:
            logger.warning("cache_get_failed", key=key, error=str(e))
            return None
        return json.loads(val) if val else None

    async def set(self, key: str, value: Any, ttl_seconds: int = 60) -> bool:
        r = await self._client()
        if r is None:
            return False
        try:
            await r.set(key, json.dumps(value, ensure_ascii=False, default=str), ex=ttl_seconds)
        except (aioredis.RedisError, OSError) as e:
            logger.warning("cache_set_failed", key=key, error=str(e))
            return False
        return True

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None


def analytics_key(user_id: str, range_: str) -> str:
    return f"agentledger:analytics:{user_id}:{range_}"
