"""Disk-based cache store built on :mod:`diskcache`.

Persists entries in a :class:`diskcache.Cache` directory so cached
responses survive restarts and are shared by every worker process on one
host. ``diskcache`` accepts fractional-second expiry, so millisecond TTLs
are honoured. Its calls block on file I/O and run in a worker thread to
keep the event loop free.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import diskcache

from webcache.exceptions import StoreError
from webcache.stores.base import CacheStore, StoreValue


class DiskStore(CacheStore):
    """Disk-backed :class:`~webcache.stores.base.CacheStore`.

    Args:
        cache_dir: Root directory for the cache. A ``responses/``
            subdirectory is created inside it.

    Example::

        store = DiskStore("/var/cache/myapp")
        await store.set("wc_/_", b"<html>", 60_000)
    """

    def __init__(self, cache_dir: str | Path) -> None:
        self._cache_dir = Path(cache_dir)
        self._cache = diskcache.Cache(str(self._cache_dir / "responses"))

    @property
    def directory(self) -> Path:
        return self._cache_dir / "responses"

    async def get(self, key: str) -> Optional[StoreValue]:
        try:
            return await asyncio.to_thread(self._cache.get, key)
        except diskcache.Timeout as exc:
            raise StoreError(f"diskcache GET {key!r} timed out") from exc

    async def set(self, key: str, value: Optional[StoreValue], ttl_ms: Optional[int] = 0) -> None:
        try:
            if not value:
                await asyncio.to_thread(self._cache.delete, key)
                return
            expire = ttl_ms / 1000 if ttl_ms else None
            await asyncio.to_thread(self._cache.set, key, value, expire)
        except diskcache.Timeout as exc:
            raise StoreError(f"diskcache SET {key!r} timed out") from exc

    def clear(self) -> None:
        """Remove all entries from the store."""
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Return ``size`` (number of entries) and ``directory``."""
        return {
            "size": len(self._cache),
            "directory": str(self.directory),
        }

    def close(self) -> None:
        """Close the underlying :class:`diskcache.Cache` and release resources."""
        self._cache.close()
