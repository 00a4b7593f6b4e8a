"""The store contract shared by every cache backend.

A store is anything with two awaitable methods::

    async def get(key: str) -> value | None
    async def set(key: str, value, ttl_ms: int = 0) -> None

:class:`CacheStore` spells the contract out for the bundled backends, but
the middleware only checks for the two callables, so any object that
provides them can be plugged in.

Rules every backend follows:

* ``get`` returns ``None`` on a miss and on an entry found to be expired.
  Failures are raised; the middleware logs them and treats the request
  as a miss.
* ``set`` with a falsy value (``None``, ``b""``, ``""``) deletes the key
  instead of storing an empty value.
* ``ttl_ms`` of ``0`` or ``None`` means "no expiry".
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

StoreValue = Union[bytes, str]


class CacheStore(ABC):
    """Base class for the bundled cache backends."""

    @abstractmethod
    async def get(self, key: str) -> Optional[StoreValue]:
        """Return the value stored under *key*, or ``None``."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Optional[StoreValue], ttl_ms: Optional[int] = 0) -> None:
        """Store *value* under *key* for *ttl_ms* milliseconds, or delete it when falsy."""
        ...


def is_store(obj: Any) -> bool:
    """Return True if *obj* provides callable ``get`` and ``set`` methods."""
    return (
        obj is not None
        and callable(getattr(obj, "get", None))
        and callable(getattr(obj, "set", None))
    )
