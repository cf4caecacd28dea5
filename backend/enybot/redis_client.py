"""
Redis-backed JSON cache.

Cache failures never fail a request: reads degrade to a miss and writes
become no-ops, with the error logged.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from enybot.config import settings

logger = logging.getLogger(__name__)


def _json_default(value: Any):
    """Serialize datetimes, UUIDs and enums as strings."""
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return str(value)


class RedisCache:
    """String-keyed JSON blobs with TTL."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self.client = None

    async def initialize(self):
        """Initialize Redis connection."""
        if not self.client:
            self.client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True
            )
            logger.info("Redis connection initialized")
        return self.client

    async def close(self):
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def get_json(self, key: str) -> Optional[Any]:
        try:
            client = await self.initialize()
            data = await client.get(key)
            if not data:
                return None
            if isinstance(data, bytes):
                data = data.decode("utf-8")
            return json.loads(data)
        except Exception as e:
            logger.error(f"Redis get error for {key}: {e}")
            return None

    async def set_json(self, key: str, value: Any, ttl: int = 300) -> None:
        try:
            client = await self.initialize()
            await client.set(key, json.dumps(value, default=_json_default), ex=ttl)
        except Exception as e:
            logger.error(f"Redis set error for {key}: {e}")

    async def delete(self, key: str) -> None:
        try:
            client = await self.initialize()
            await client.delete(key)
        except Exception as e:
            logger.error(f"Redis delete error for {key}: {e}")


def chat_history_key(user_id: str) -> str:
    return f"chat_history:{user_id}"


def guest_reply_key(message: str) -> str:
    return f"chat:guest:{message}"


# Create singleton instance
redis_cache = RedisCache()


def get_cache() -> RedisCache:
    """Dependency returning the shared cache."""
    return redis_cache
