"""Capture of an origin response while it streams to the client.

:class:`ResponseCapture` decorates the ASGI ``send`` callable. Every message
is forwarded to the real sink unchanged; body chunks are also appended to an
in-memory buffer. Once the final body message has gone out, the completion
hook runs exactly once with the capture, which then knows the status,
headers and full body of the response and can decide whether it may be
stored.

If the client goes away before the response finishes, the final message
never arrives, the hook never runs and the buffer is dropped with the
request.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from starlette.datastructures import Headers
from starlette.types import Message, Send

from webcache.cache_control import has_no_cache

DEFAULT_CHARSET = "utf-8"

CompletionHook = Callable[["ResponseCapture"], Awaitable[None]]


def charset_of(content_type: Optional[str]) -> str:
    """Charset parameter of a ``Content-Type`` value, or UTF-8."""
    if content_type:
        for param in content_type.split(";")[1:]:
            name, _, value = param.partition("=")
            if name.strip().lower() == "charset" and value.strip():
                return value.strip().strip('"')
    return DEFAULT_CHARSET


class ResponseCapture:
    """An ASGI ``send`` wrapper that buffers the response body.

    Args:
        send: The real ASGI ``send`` callable.
        on_complete: Awaited once, after the last body message has been
            forwarded.

    Attributes:
        status: Response status code, ``None`` until the response starts.
        headers: Response headers, empty until the response starts.
        chunks: Body chunks in the order they were sent.
        size: Total number of buffered bytes.
    """

    def __init__(self, send: Send, on_complete: Optional[CompletionHook] = None) -> None:
        self._send = send
        self._on_complete = on_complete
        self.status: Optional[int] = None
        self.headers = Headers()
        self.chunks: list[bytes] = []
        self.size = 0
        self.completed = False

    async def __call__(self, message: Message) -> None:
        msg_type = message["type"]
        if msg_type == "http.response.start":
            self.status = message["status"]
            self.headers = Headers(raw=list(message.get("headers", [])))
            await self._send(message)
        elif msg_type == "http.response.body":
            await self._send(message)
            self.write(message.get("body", b""))
            if not message.get("more_body", False):
                await self._complete()
        else:
            await self._send(message)

    def write(self, chunk: Any, encoding: Optional[str] = None) -> None:
        """Append *chunk* to the buffer.

        Text chunks are encoded with *encoding*, falling back to the charset
        declared in the response ``Content-Type``, so text and binary writes
        end up in one consistent byte buffer.
        """
        if not chunk:
            return
        if isinstance(chunk, str):
            chunk = chunk.encode(encoding or charset_of(self.content_type))
        elif not isinstance(chunk, bytes):
            chunk = bytes(chunk)
        self.chunks.append(chunk)
        self.size += len(chunk)

    async def _complete(self) -> None:
        if self.completed:
            return
        self.completed = True
        if self._on_complete is not None:
            await self._on_complete(self)

    @property
    def body(self) -> bytes:
        return b"".join(self.chunks)

    @property
    def content_type(self) -> Optional[str]:
        return self.headers.get("content-type")

    @property
    def cache_control(self) -> Optional[str]:
        return self.headers.get("cache-control")

    def should_persist(self) -> bool:
        """Return True if the captured response may be written to the store.

        Requires a 200 status, no ``no-cache`` directive on the response, a
        non-empty body and a ``Content-Type`` header.
        """
        if self.status != 200:
            return False
        if has_no_cache(self.cache_control):
            return False
        if self.size == 0:
            return False
        return bool(self.content_type)
