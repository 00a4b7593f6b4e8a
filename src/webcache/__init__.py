"""webcache -- response caching middleware for ASGI applications.

Caches the bodies of ``GET`` responses whose path matches a configured rule
and serves them from a pluggable store on later requests::

    from webcache import MemoryStore, WebCacheMiddleware

    app = WebCacheMiddleware(
        app,
        store=MemoryStore(),
        rules=[{"match": r"^/article/", "max_age": 3_600_000}],
    )

Modules:
    middleware: The ASGI middleware that ties everything together.
    capture: The ``send`` wrapper that buffers origin responses.
    rules: Last-match-wins rule selection.
    keys: Cache key derivation.
    cache_control: ``Cache-Control`` header parsing.
    join: Concurrent read join with first-error-wins semantics.
    stores: Memory, Redis and disk store backends.
    models: Pydantic models for rules, options and config files.
    config: Test-mode flag and config file loading.
    cli: The ``webcache`` command line tool.
"""

__version__ = "0.3.0"

from webcache.exceptions import ConfigError, StoreError, WebCacheError  # noqa: E402
from webcache.middleware import WebCacheMiddleware  # noqa: E402
from webcache.models import CacheOptions, CacheRule, StoreConfig, WebCacheConfig  # noqa: E402
from webcache.stores import (  # noqa: E402
    CacheStore,
    DiskStore,
    MemoryStore,
    RedisStore,
    create_store,
)

__all__ = [
    "CacheOptions",
    "CacheRule",
    "CacheStore",
    "ConfigError",
    "DiskStore",
    "MemoryStore",
    "RedisStore",
    "StoreConfig",
    "StoreError",
    "WebCacheConfig",
    "WebCacheError",
    "WebCacheMiddleware",
    "__version__",
    "create_store",
]
