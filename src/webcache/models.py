"""Canonical Pydantic models shared across all webcache modules.

**Rule models** -- what to cache and for how long:
    :class:`CacheRule` and the global defaults in :class:`CacheOptions`.

**Deployment models** -- how to build a middleware from a config file:
    :class:`StoreConfig` and :class:`WebCacheConfig`.

All durations are in milliseconds, matching the store contract.
"""

from __future__ import annotations

import re
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_MAX_AGE = 300_000
"""Default rule TTL in milliseconds (five minutes)."""


class CacheOptions(BaseModel):
    """Global defaults applied to every rule that leaves a field unset.

    Example::

        CacheOptions(max_age=60_000, version="2012", client_cache=True)
    """

    max_age: int = Field(
        default=DEFAULT_MAX_AGE, ge=0, description="Default TTL in milliseconds"
    )
    version: str = Field(
        default="",
        description="Tag appended to every cache key; bump it to drop all entries",
    )
    ignore_querystring: bool = Field(
        default=False, description="Leave the query string out of cache keys"
    )
    client_cache: bool = Field(
        default=False,
        description="Send 'Cache-Control: public, max-age=N' on cache hits",
    )

    @field_validator("max_age", mode="before")
    @classmethod
    def _default_max_age(cls, value: Any) -> Any:
        # 0 and None both mean "not configured".
        return value or DEFAULT_MAX_AGE

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: Any) -> Any:
        # Numeric tags such as 2012 are common in configs.
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class CacheRule(BaseModel):
    """A URL pattern bound to a caching policy.

    ``match`` is searched (not anchored) against the request path only; the
    query string never takes part in matching. Fields left as ``None`` are
    filled from :class:`CacheOptions` by :meth:`with_defaults` when the
    middleware is built.

    Example::

        CacheRule(match=r"^/article/\\w+", max_age=3_600_000, ignore_querystring=True)
    """

    model_config = ConfigDict(frozen=True)

    match: re.Pattern[str] = Field(description="Regex searched against the path")
    max_age: Optional[int] = Field(default=None, ge=0, description="TTL in milliseconds")
    ignore_querystring: Optional[bool] = None
    client_cache: Optional[bool] = None

    def with_defaults(self, options: CacheOptions) -> CacheRule:
        """Return a copy with every unset field taken from *options*.

        A ``max_age`` of ``0`` counts as unset.
        """
        return self.model_copy(
            update={
                "max_age": self.max_age or options.max_age,
                "ignore_querystring": (
                    options.ignore_querystring
                    if self.ignore_querystring is None
                    else self.ignore_querystring
                ),
                "client_cache": (
                    options.client_cache if self.client_cache is None else self.client_cache
                ),
            }
        )

    def matches(self, path: str) -> bool:
        return self.match.search(path) is not None


class StoreConfig(BaseModel):
    """Which store backend to build and how to reach it."""

    backend: Literal["memory", "redis", "disk"] = "memory"
    url: Optional[str] = Field(
        default=None, description="Connection URL for the redis backend"
    )
    directory: Optional[str] = Field(
        default=None, description="Cache directory for the disk backend"
    )


class WebCacheConfig(BaseModel):
    """Everything needed to build a :class:`~webcache.middleware.WebCacheMiddleware`.

    Loaded from JSON or YAML by :func:`~webcache.config.load_config`::

        rules:
          - match: "^/article/\\\\w+"
            max_age: 3600000
            ignore_querystring: true
          - match: "^/$"
            max_age: 86400000
        options:
          version: "2012"
        store:
          backend: redis
          url: redis://localhost:6379/0
    """

    rules: list[CacheRule] = Field(min_length=1)
    options: CacheOptions = Field(default_factory=CacheOptions)
    store: StoreConfig = Field(default_factory=StoreConfig)
