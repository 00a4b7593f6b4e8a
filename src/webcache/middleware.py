"""ASGI response-caching middleware.

:class:`WebCacheMiddleware` wraps an ASGI application. For every ``GET``
request whose path matches a :class:`~webcache.models.CacheRule` it looks up
the cached body and content type concurrently. A usable entry is served
directly, without calling the wrapped application. Otherwise the request
goes through to the application while :class:`~webcache.capture.ResponseCapture`
records the response, and a ``200`` response with a body and a content type
is written back to the store, in a separate task, once it has been sent.

The middleware never fails a request because of the store: read errors are
logged and treated as misses, write errors are logged and dropped.

Example::

    from fastapi import FastAPI
    from webcache import MemoryStore, WebCacheMiddleware

    app = FastAPI()
    app.add_middleware(
        WebCacheMiddleware,
        store=MemoryStore(),
        rules=[
            {"match": r"^/article/\\w+", "max_age": 3_600_000, "ignore_querystring": True},
            {"match": r"^/$", "max_age": 86_400_000},
            {"match": r"^/comments?"},
        ],
        version="2012",
    )
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError
from starlette.datastructures import Headers
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from webcache import __version__
from webcache.cache_control import has_no_cache
from webcache.capture import ResponseCapture, charset_of
from webcache.exceptions import ConfigError
from webcache.join import join
from webcache.keys import CacheKey, make_cache_key
from webcache.models import CacheOptions, CacheRule, WebCacheConfig
from webcache.rules import RuleMatcher
from webcache.stores import create_store, is_store

logger = logging.getLogger(__name__)

CACHE_MARKER_HEADER = "X-Cache-By"
CACHE_MARKER = f"WebCache{__version__}"

RuleSpec = Union[CacheRule, Mapping[str, Any]]


class WebCacheMiddleware:
    """Serve matching ``GET`` requests from a cache store.

    Args:
        app: The wrapped ASGI application.
        store: Any object with awaitable ``get(key)`` and
            ``set(key, value, ttl_ms)`` methods, e.g. a
            :class:`~webcache.stores.MemoryStore`.
        rules: Non-empty list of :class:`~webcache.models.CacheRule`
            objects or dicts with the same fields.
        options: Global defaults as :class:`~webcache.models.CacheOptions`
            or a dict.
        **option_kwargs: Individual option overrides (``max_age``,
            ``version``, ``ignore_querystring``, ``client_cache``).

    Raises:
        ConfigError: If *store* lacks ``get``/``set``, *rules* is empty, or
            a rule or option fails validation. ``ConfigError`` is a
            :class:`TypeError`.
    """

    def __init__(
        self,
        app: ASGIApp,
        store: Any = None,
        rules: Optional[Iterable[RuleSpec]] = None,
        options: Union[CacheOptions, Mapping[str, Any], None] = None,
        **option_kwargs: Any,
    ) -> None:
        if not is_store(store):
            raise ConfigError("store must support get() and set()")
        rule_list = list(rules) if rules else []
        if not rule_list:
            raise ConfigError("rules must not be empty")

        try:
            self.options = _build_options(options, option_kwargs)
            parsed = [r if isinstance(r, CacheRule) else CacheRule.model_validate(r) for r in rule_list]
        except ValidationError as exc:
            raise ConfigError(f"Invalid cache configuration: {exc}") from exc

        self.app = app
        self.store = store
        self.matcher = RuleMatcher(parsed, self.options)
        self._background: set[asyncio.Task[None]] = set()

    @classmethod
    def from_config(cls, app: ASGIApp, config: WebCacheConfig) -> WebCacheMiddleware:
        """Build the middleware, and its store, from a loaded config file."""
        return cls(app, store=create_store(config.store), rules=config.rules, options=config.options)

    @property
    def rules(self) -> tuple[CacheRule, ...]:
        return self.matcher.rules

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        rule = self.matcher.match(scope.get("method", ""), path)
        if rule is None:
            await self.app(scope, receive, send)
            return

        key = make_cache_key(_raw_path(scope), _query_string(scope), rule, self.options.version)

        if has_no_cache(Headers(scope=scope).get("cache-control")):
            logger.debug("Request for '%s' sent no-cache, skipping lookup", key.body)
        else:
            cached = await self._lookup(key)
            if cached is not None:
                logger.debug("Cache hit for '%s'", key.body)
                body, content_type = cached
                await self._serve(scope, receive, send, rule, body, content_type)
                return

        writes: list[asyncio.Task[None]] = []
        capture = ResponseCapture(send, functools.partial(self._start_persist, key, rule, writes))
        await self.app(scope, receive, capture)
        if writes:
            # Shielded so a cancelled request still leaves the write running.
            await asyncio.shield(writes[0])

    async def _lookup(self, key: CacheKey) -> Optional[tuple[bytes, str]]:
        """Read the body and content type of *key* concurrently.

        Returns ``None`` on a miss, on a half-written pair, or when either
        read fails.
        """
        try:
            results = await join(
                body=self.store.get(key.body),
                content_type=self.store.get(key.content_type),
            )
        except Exception as exc:
            logger.warning("Cache lookup for '%s' failed, treating as a miss: %s", key.body, exc)
            return None

        body, content_type = results["body"], results["content_type"]
        if not body or not content_type:
            return None
        if isinstance(content_type, bytes):
            content_type = content_type.decode("latin-1")
        if isinstance(body, str):
            body = body.encode(charset_of(content_type))
        return body, content_type

    async def _serve(
        self,
        scope: Scope,
        receive: Receive,
        send: Send,
        rule: CacheRule,
        body: bytes,
        content_type: str,
    ) -> None:
        headers = {
            "Content-Type": content_type,
            CACHE_MARKER_HEADER: CACHE_MARKER,
        }
        if rule.client_cache and rule.max_age >= 1000:
            headers["Cache-Control"] = f"public, max-age={rule.max_age // 1000}"
        response = Response(content=body, status_code=200, headers=headers)
        await response(scope, receive, send)

    async def _start_persist(
        self, key: CacheKey, rule: CacheRule, writes: list[asyncio.Task[None]], capture: ResponseCapture
    ) -> None:
        """Run :meth:`_persist` in its own task.

        The final ``send`` can run inside a task that the server or the
        response class cancels as soon as the body is out (Starlette's
        ``StreamingResponse`` does this on ``http.disconnect``). The request
        awaits the task after the app returns.
        """
        task = asyncio.ensure_future(self._persist(key, rule, capture))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        writes.append(task)

    async def _persist(self, key: CacheKey, rule: CacheRule, capture: ResponseCapture) -> None:
        if not capture.should_persist():
            logger.debug(
                "Not caching '%s' (status=%s, size=%d)", key.body, capture.status, capture.size
            )
            return
        # Two independent writes; a half-written pair reads back as a miss.
        await asyncio.gather(
            self._write(key.body, capture.body, rule.max_age),
            self._write(key.content_type, capture.content_type, rule.max_age),
        )
        logger.debug("Cached %d bytes under '%s' for %sms", capture.size, key.body, rule.max_age)

    async def _write(self, key: str, value: Any, ttl_ms: Optional[int]) -> None:
        try:
            await self.store.set(key, value, ttl_ms)
        except Exception as exc:
            logger.warning("Cache write for '%s' failed: %s", key, exc)


def _raw_path(scope: Scope) -> str:
    # scope["path"] is percent-decoded, so "/a%3Fb" and "/a?b" would share a key.
    raw = scope.get("raw_path")
    if raw:
        return raw.split(b"?", 1)[0].decode("latin-1")
    return scope.get("path", "")


def _query_string(scope: Scope) -> str:
    return scope.get("query_string", b"").decode("latin-1")


def _build_options(
    options: Union[CacheOptions, Mapping[str, Any], None], overrides: Mapping[str, Any]
) -> CacheOptions:
    if isinstance(options, CacheOptions):
        base = options.model_dump()
    else:
        base = dict(options or {})
    base.update(overrides)
    return CacheOptions.model_validate(base)
