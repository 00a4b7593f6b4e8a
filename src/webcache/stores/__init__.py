"""Cache store backends.

* :class:`MemoryStore` -- in-process ``dict`` with millisecond TTLs, for
  tests and single-process use.
* :class:`RedisStore` -- adapter over a ``redis.asyncio`` client.
* :class:`DiskStore` -- :mod:`diskcache` directory shared by the processes
  of one host.

:func:`create_store` builds one of them from a
:class:`~webcache.models.StoreConfig`.
"""

from __future__ import annotations

from webcache.exceptions import ConfigError
from webcache.models import StoreConfig
from webcache.stores.base import CacheStore, StoreValue, is_store
from webcache.stores.disk import DiskStore
from webcache.stores.memory import MemoryStore
from webcache.stores.redis_store import RedisStore

__all__ = [
    "CacheStore",
    "DiskStore",
    "MemoryStore",
    "RedisStore",
    "StoreValue",
    "create_store",
    "is_store",
]


def create_store(config: StoreConfig) -> CacheStore:
    """Build the store backend described by *config*.

    Raises:
        ConfigError: If the backend needs a ``url`` or ``directory`` that
            the config does not provide.
    """
    if config.backend == "memory":
        return MemoryStore()
    if config.backend == "redis":
        if not config.url:
            raise ConfigError("store.url is required for the redis backend")
        return RedisStore.from_url(config.url)
    if not config.directory:
        raise ConfigError("store.directory is required for the disk backend")
    return DiskStore(config.directory)
