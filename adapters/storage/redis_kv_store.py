from __future__ import annotations

import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from core.domain.errors import PersistenceError

logger = logging.getLogger(__name__)


class RedisKeyValueStore:
    """Redis-backed key-value store with namespaced keys."""

    def __init__(self, redis_url: str, *, namespace: str = "moviemarket", client: Redis | None = None) -> None:
        self._client = client or Redis.from_url(redis_url, decode_responses=True)
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}" if self._namespace else key

    async def get(self, key: str) -> str | None:
        try:
            return await self._client.get(self._key(key))
        except RedisError as exc:
            raise PersistenceError(f"Failed to read {key}: {exc}") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            await self._client.set(self._key(key), value)
        except RedisError as exc:
            raise PersistenceError(f"Failed to write {key}: {exc}") from exc

    async def remove(self, key: str) -> None:
        try:
            await self._client.delete(self._key(key))
        except RedisError as exc:
            raise PersistenceError(f"Failed to remove {key}: {exc}") from exc

    async def close(self) -> None:
        await self._client.close()
