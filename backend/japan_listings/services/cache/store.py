"""Key-value store used for caching, backed by Redis."""

from collections.abc import Mapping, Sequence
from typing import Protocol

import redis.asyncio as aioredis
import structlog

logger = structlog.get_logger()


class CacheStore(Protocol):
    """The store operations the caches rely on."""

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def ping(self) -> bool: ...

    async def get(self, key: str) -> str | None: ...

    async def set_with_expiry(self, key: str, ttl_seconds: int, value: str) -> None: ...

    async def exists(self, key: str) -> bool: ...

    async def delete(self, *keys: str) -> None: ...

    async def keys_matching(self, pattern: str) -> list[str]: ...

    async def get_multiple(self, keys: Sequence[str]) -> list[str | None]: ...

    async def multi_set_with_expiry(self, entries: Mapping[str, str], ttl_seconds: int) -> None: ...


class RedisCacheStore:
    """CacheStore over a single ``redis.asyncio`` connection.

    ``connect()`` must be awaited before use; it fails loudly when the server
    is unreachable.
    """

    def __init__(self, url: str, connect_timeout: float = 5.0, client: aioredis.Redis | None = None):
        self.url = url
        self._connect_timeout = connect_timeout
        self._client = client

    @property
    def client(self) -> aioredis.Redis:
        if self._client is None:
            raise RuntimeError("RedisCacheStore is not connected")
        return self._client

    async def connect(self) -> None:
        if self._client is None:
            self._client = aioredis.from_url(
                self.url,
                decode_responses=True,
                socket_connect_timeout=self._connect_timeout,
            )
        await self._client.ping()
        logger.info("Redis client connected")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Redis client disconnected")

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def get(self, key: str) -> str | None:
        return await self.client.get(key)

    async def set_with_expiry(self, key: str, ttl_seconds: int, value: str) -> None:
        await self.client.setex(key, ttl_seconds, value)

    async def exists(self, key: str) -> bool:
        return await self.client.exists(key) == 1

    async def delete(self, *keys: str) -> None:
        if keys:
            await self.client.delete(*keys)

    async def keys_matching(self, pattern: str) -> list[str]:
        return list(await self.client.keys(pattern))

    async def get_multiple(self, keys: Sequence[str]) -> list[str | None]:
        if not keys:
            return []
        return list(await self.client.mget(list(keys)))

    async def multi_set_with_expiry(self, entries: Mapping[str, str], ttl_seconds: int) -> None:
        if not entries:
            return
        async with self.client.pipeline(transaction=True) as pipe:
            for key, value in entries.items():
                pipe.setex(key, ttl_seconds, value)
            await pipe.execute()
