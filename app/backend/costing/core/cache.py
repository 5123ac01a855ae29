"""Best-effort key-value cache for computed costing snapshots."""

from __future__ import annotations

import logging

from fastapi import Request
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CostingCache:
    """Redis-backed cache; without a client every read misses and writes are dropped.

    Backend failures are logged and reported as a miss, never raised.
    """

    def __init__(self, client: Redis | None) -> None:
        self.client = client

    @classmethod
    def from_url(cls, redis_url: str | None) -> CostingCache:
        if not redis_url:
            return cls(None)
        return cls(Redis.from_url(redis_url))

    async def get(self, key: str) -> bytes | None:
        if self.client is None:
            return None
        try:
            return await self.client.get(key)
        except RedisError as exc:
            logger.warning("Cache read failed for %s: %s", key, exc)
            return None

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        if self.client is None:
            return
        try:
            await self.client.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)

    async def delete(self, key: str) -> None:
        if self.client is None:
            return
        try:
            await self.client.delete(key)
        except RedisError as exc:
            logger.warning("Cache delete failed for %s: %s", key, exc)

    async def close(self) -> None:
        if self.client is not None:
            await self.client.aclose()


def get_costing_cache(request: Request) -> CostingCache:
    """Cache client created by the application lifespan."""

    return request.app.state.costing_cache
