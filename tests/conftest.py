"""Shared test fixtures for webcache.

Provides a fake millisecond clock, an in-memory store driven by it, an
origin ASGI app that mimics a small website, and a ``TestClient`` for the
origin wrapped in :class:`~webcache.middleware.WebCacheMiddleware`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import pytest
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import Response, StreamingResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from webcache import MemoryStore, WebCacheMiddleware
from webcache.exceptions import StoreError


# ---------------------------------------------------------------------------
# Test mode
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test in webcache test mode (no MemoryStore warning)."""
    monkeypatch.setenv("WEBCACHE_ENV", "test")


# ---------------------------------------------------------------------------
# Clock and stores
# ---------------------------------------------------------------------------


class FakeClock:
    """A settable clock returning epoch milliseconds."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FlakyStore(MemoryStore):
    """A MemoryStore whose reads fail for keys containing a marker."""

    def __init__(self, *args: Any, fail_marker: Optional[str] = "mock_get_error", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self.fail_marker = fail_marker
        self.get_calls: list[str] = []
        self.set_calls: list[tuple[str, Any, Any]] = []

    async def get(self, key: str):
        self.get_calls.append(key)
        if self.fail_marker and self.fail_marker in key:
            raise StoreError(f"mock get {key} error")
        return await super().get(key)

    async def set(self, key: str, value, ttl_ms=0) -> None:
        self.set_calls.append((key, value, ttl_ms))
        await super().set(key, value, ttl_ms)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> FlakyStore:
    return FlakyStore(clock=clock)


# ---------------------------------------------------------------------------
# Origin application
# ---------------------------------------------------------------------------


IMAGE = bytes(range(256)) * 64
LARGE_TEXT = ("webcache line of text, repeated to make a large body.\n" * 2000).encode()

RULES: list[dict[str, Any]] = [
    {"match": r"^/article/\w+", "max_age": 3_600_000, "ignore_querystring": True, "client_cache": True},
    {"match": r"^/$", "max_age": 1000, "ignore_querystring": True},
    {"match": r"^/comments?"},
]


class Origin:
    """Counts calls and answers ``METHOD URL`` like a tiny website."""

    def __init__(self) -> None:
        self.calls = 0

    async def handle(self, request: Request) -> Response:
        self.calls += 1
        path = request.url.path
        url = path + (f"?{request.url.query}" if request.url.query else "")

        if path == "/article/image":
            return Response(IMAGE, media_type="image/png")
        if path == "/article/large":
            return Response(LARGE_TEXT, media_type="text/plain")
        if path == "/article/streamed":
            return _streamed()

        status = 200
        if "/error" in url:
            status = 500
        if "/404" in url:
            status = 404
        headers = {}
        if request.query_params.get("nocache"):
            headers["Cache-Control"] = "no-cache"
        if request.query_params.get("notype"):
            return Response(f"{request.method} {url}".encode(), status_code=status, headers=headers)
        content_type = request.query_params.get("content_type", "text/html")
        return Response(
            f"{request.method} {url}",
            status_code=status,
            headers=headers,
            media_type=content_type,
        )


def _streamed() -> Response:
    async def chunks():
        yield b"part-1;"
        yield "part-2;"
        yield b"part-3"

    return StreamingResponse(chunks(), media_type="text/plain")


@pytest.fixture
def origin() -> Origin:
    return Origin()


def build_app(origin: Origin, store: Any, rules: Optional[list] = None, **options: Any) -> Starlette:
    options.setdefault("version", "2012")
    return Starlette(
        routes=[
            Route("/{path:path}", origin.handle, methods=["GET", "POST", "PUT", "DELETE", "HEAD"]),
        ],
        middleware=[
            Middleware(WebCacheMiddleware, store=store, rules=rules or RULES, **options),
        ],
    )


@pytest.fixture
def client(origin: Origin, store: FlakyStore) -> TestClient:
    return TestClient(build_app(origin, store))


# ---------------------------------------------------------------------------
# Config files
# ---------------------------------------------------------------------------


@pytest.fixture
def yaml_config(tmp_path: Path) -> Path:
    path = tmp_path / "webcache.yaml"
    path.write_text(
        """\
rules:
  - match: "^/article/\\\\w+"
    max_age: 3600000
    ignore_querystring: true
    client_cache: true
  - match: "^/$"
    max_age: 500
options:
  version: 2012
store:
  backend: memory
""",
        encoding="utf-8",
    )
    return path
