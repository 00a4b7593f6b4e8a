"""A small fan-out/join primitive for concurrent store reads.

A cache lookup issues two reads -- body and content type -- without waiting
for one before starting the other. :class:`Join` collects their results in
whatever order they arrive and resumes the waiter once all of them are in,
or as soon as the first one fails.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable


class Join:
    """Pending-result counter plus an error slot.

    Each expected result is named up front. :meth:`emit` records a result
    and :meth:`fail` records an error; :meth:`wait` returns the results
    keyed by name once nothing is pending, or raises the first recorded
    error. Anything emitted after completion is ignored.

    Must be created inside a running event loop.
    """

    def __init__(self, *names: str) -> None:
        if not names:
            raise ValueError("Join needs at least one name")
        self._pending = set(names)
        self._results: dict[str, Any] = {}
        self._done: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def done(self) -> bool:
        return self._done.done()

    def emit(self, name: str, value: Any) -> None:
        if self._done.done() or name not in self._pending:
            return
        self._pending.discard(name)
        self._results[name] = value
        if not self._pending:
            self._done.set_result(dict(self._results))

    def fail(self, exc: BaseException) -> None:
        if not self._done.done():
            self._done.set_exception(exc)

    async def wait(self) -> dict[str, Any]:
        return await self._done


async def join(**awaitables: Awaitable[Any]) -> dict[str, Any]:
    """Await every keyword argument concurrently and return results by name.

    The first exception raised by any awaitable is re-raised immediately and
    the awaitables still running are cancelled.

    Example::

        results = await join(body=store.get(key), content_type=store.get(ct_key))
        results["body"], results["content_type"]
    """
    gate = Join(*awaitables)

    async def _run(name: str, aw: Awaitable[Any]) -> None:
        try:
            value = await aw
        except Exception as exc:
            gate.fail(exc)
        else:
            gate.emit(name, value)

    tasks = [asyncio.ensure_future(_run(name, aw)) for name, aw in awaitables.items()]
    try:
        return await gate.wait()
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
