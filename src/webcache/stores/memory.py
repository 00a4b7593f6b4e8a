"""In-process cache store with millisecond TTLs.

Intended for tests and single-process development servers. It keeps every
entry in a plain ``dict``: there is no memory bound, no eviction besides
TTL expiry and no sharing between processes. A warning is logged when it
is created outside of test mode (see :func:`~webcache.config.is_test_env`).

Expiry is lazy. Nothing sweeps the dict in the background; a read that
finds an expired record deletes it and reports a miss.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, NamedTuple, Optional

from webcache.config import is_test_env
from webcache.stores.base import CacheStore, StoreValue

logger = logging.getLogger(__name__)


def _epoch_ms() -> float:
    return time.time() * 1000


class _Record(NamedTuple):
    value: StoreValue
    expires_at: float  # epoch milliseconds, 0 = never
    ttl_ms: int


class MemoryStore(CacheStore):
    """A ``dict``-backed :class:`~webcache.stores.base.CacheStore`.

    Args:
        clock: Returns the current time in epoch milliseconds. Tests pass
            a fake clock to step over TTL boundaries.

    Example::

        store = MemoryStore()
        await store.set("wc_/_", b"<html>", 1000)
        await store.get("wc_/_")   # b"<html>" for the next second
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self._data: dict[str, _Record] = {}
        self._clock = clock or _epoch_ms
        if not is_test_env():
            logger.warning(
                "MemoryStore keeps entries in process memory with no size bound; "
                "do not use it in production"
            )

    def _now_ms(self) -> float:
        return self._clock()

    async def get(self, key: str) -> Optional[StoreValue]:
        record = self._data.get(key)
        if record is None:
            return None
        if record.expires_at and self._now_ms() >= record.expires_at:
            del self._data[key]
            return None
        return record.value

    async def set(self, key: str, value: Optional[StoreValue], ttl_ms: Optional[int] = 0) -> None:
        if not value:
            self._data.pop(key, None)
            return
        ttl_ms = ttl_ms or 0
        expires_at = self._now_ms() + ttl_ms if ttl_ms else 0
        self._data[key] = _Record(value, expires_at, ttl_ms)

    def clear(self) -> None:
        self._data.clear()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data
