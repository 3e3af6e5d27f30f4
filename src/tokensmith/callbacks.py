"""Callback-style surface over the library's coroutines.

Every network operation in tokensmith is a coroutine. For callers written
around completion callbacks, :func:`with_callback` schedules the same
coroutine as a task and reports its outcome as ``callback(error, result)``.
There is no second code path: the awaited and the callback forms run the
identical coroutine and differ only in how completion is delivered.

Example::

    def on_done(error, token):
        if error is not None:
            ...
        else:
            ...

    with_callback(token.refresh(), on_done)
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")

Callback = Callable[[Optional[BaseException], Optional[T]], Any]


def with_callback(awaitable: Awaitable[T], callback: Callback[T]) -> asyncio.Future[T]:
    """Schedule *awaitable* on the running loop and call *callback* when it finishes.

    The callback receives ``(None, result)`` on success and
    ``(exception, None)`` on failure. Cancellation is reported as
    :class:`asyncio.CancelledError`. The returned future can still be
    awaited; it resolves or raises exactly like the original coroutine.

    Must be called from inside a running event loop.
    """
    future = asyncio.ensure_future(awaitable)

    def _done(fut: asyncio.Future[T]) -> None:
        if fut.cancelled():
            callback(asyncio.CancelledError(), None)
            return
        exc = fut.exception()
        if exc is not None:
            callback(exc, None)
        else:
            callback(None, fut.result())

    future.add_done_callback(_done)
    return future


def run_sync(awaitable: Awaitable[T]) -> T:
    """Run *awaitable* to completion from synchronous code (e.g. the CLI)."""

    async def _main() -> T:
        return await awaitable

    return asyncio.run(_main())
