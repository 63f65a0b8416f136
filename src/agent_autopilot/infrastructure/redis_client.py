"""Redis client for webhook idempotency keys.

Usage:
    redis = await init_redis(settings)
    store = IdempotencyStore(redis, ttl_seconds=settings.redis_idempotency_ttl_seconds)
    if not await store.claim("feedback:evt_123"):
        ...  # duplicate delivery
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import redis.asyncio as aioredis

from agent_autopilot.logging_config import get_logger

if TYPE_CHECKING:
    from agent_autopilot.config import Settings

logger = get_logger(__name__)


async def init_redis(settings: Settings) -> aioredis.Redis:
    """Create the Redis client and verify connectivity. Called during app startup."""
    client = aioredis.from_url(settings.redis_url, decode_responses=True)
    await client.ping()
    logger.info("redis.connected", url=settings.redis_url)
    return client


async def close_redis(client: aioredis.Redis) -> None:
    """Close the Redis connection. Called during app shutdown."""
    await client.aclose()
    logger.info("redis.disconnected")


class IdempotencyStore:
    """TTL'd idempotency keys stored under the `idempotency:` namespace."""

    def __init__(self, client: aioredis.Redis, ttl_seconds: int = 86400) -> None:
        self._client = client
        self._ttl = ttl_seconds

    @staticmethod
    def _key(key: str) -> str:
        return f"idempotency:{key}"

    async def seen(self, key: str) -> bool:
        """Return True if the key has already been used."""
        return bool(await self._client.exists(self._key(key)))

    async def claim(self, key: str, value: str = "1") -> bool:
        """Atomically mark a key as used.

        Returns True if this call claimed the key, False if it already existed.
        """
        return bool(await self._client.set(self._key(key), value, ex=self._ttl, nx=True))

    async def release(self, key: str) -> None:
        """Forget a key so a failed operation can be redelivered."""
        await self._client.delete(self._key(key))
