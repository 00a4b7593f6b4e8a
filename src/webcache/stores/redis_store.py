"""Cache store backed by Redis.

Adapts a ``redis.asyncio.Redis`` client (or anything exposing the same
``get``/``set``/``setex``/``delete`` coroutines) to the store contract.

TTL granularity
---------------
Redis expiry is set here with ``SETEX``, which only takes whole seconds.
A ``ttl_ms`` of at least 1000 is rounded down to seconds; anything below
1000 (including ``0``) is written with a plain ``SET`` and never expires
on its own. A rule with ``max_age=500`` therefore expires after half a
second on :class:`~webcache.stores.memory.MemoryStore` but persists until
overwritten or deleted on Redis.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from webcache.exceptions import StoreError
from webcache.stores.base import CacheStore, StoreValue

logger = logging.getLogger(__name__)

MIN_TTL_MS = 1000


class RedisStore(CacheStore):
    """A :class:`~webcache.stores.base.CacheStore` on top of a Redis client.

    Values come back from Redis as ``bytes`` unless the client was created
    with ``decode_responses=True``; the middleware accepts either for the
    content type record. Keep ``decode_responses`` off so binary bodies
    survive unchanged.

    Args:
        client: A connected ``redis.asyncio.Redis`` instance.

    Example::

        store = RedisStore.from_url("redis://localhost:6379/0")
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> RedisStore:
        """Create a store with a new client connected to *url*."""
        return cls(aioredis.from_url(url, **kwargs))

    @property
    def client(self) -> Any:
        return self._client

    async def get(self, key: str) -> Optional[StoreValue]:
        try:
            return await self._client.get(key)
        except RedisError as exc:
            raise StoreError(f"Redis GET {key!r} failed: {exc}") from exc

    async def set(self, key: str, value: Optional[StoreValue], ttl_ms: Optional[int] = 0) -> None:
        try:
            if not value:
                await self._client.delete(key)
            elif ttl_ms and ttl_ms >= MIN_TTL_MS:
                await self._client.setex(key, ttl_ms // 1000, value)
            else:
                if ttl_ms:
                    logger.debug(
                        "TTL %dms for %r is below Redis resolution; storing without expiry",
                        ttl_ms,
                        key,
                    )
                await self._client.set(key, value)
        except RedisError as exc:
            raise StoreError(f"Redis SET {key!r} failed: {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()
