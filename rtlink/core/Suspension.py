"""Cooperative suspension on top of asyncio tasks.

A call made without a callback parks the task that made it until the
matching result arrives. :class:`Suspension` is the bridge: it captures the
running task, hands out :meth:`Suspension.resume` as the ``(error, result)``
handler for the pending-call table, and is awaitable. Awaiting it yields
control to the event loop, which keeps reading the socket; when the handler
fires the task is scheduled again and the await either returns the result
or raises the error.

Usage::

    async def main(conn):
        channels = await conn.call("getMetadata")

    start(main(conn))
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Coroutine, Generator, Optional, TypeVar

from rtlink.shared.errors import ConnectionUsageError

T = TypeVar("T")

SUSPEND_OUTSIDE_TASK_ERR = (
    "calls without a callback must be made from inside a running asyncio task "
    "(use rtlink.start() or rtlink.run() to create one), or pass a callback"
)


def current_task() -> asyncio.Task:
    """Return the running task.

    Raises:
        ConnectionUsageError: If no asyncio task is running.
    """
    try:
        task = asyncio.current_task()
    except RuntimeError:
        task = None
    if task is None:
        raise ConnectionUsageError(SUSPEND_OUTSIDE_TASK_ERR)
    return task


class Suspension:
    """An awaitable slot for one callback-delivered result."""

    def __init__(self) -> None:
        self.task = current_task()
        self._future: asyncio.Future = self.task.get_loop().create_future()

    def resume(self, error: Optional[BaseException], result: Any = None) -> None:
        """Store the outcome and wake the parked task.

        Signature matches the pending-call handler. Ignored once the
        suspension is resolved or its waiter has been cancelled.
        """
        if self._future.done():
            return
        if error is not None:
            self._future.set_exception(error)
        else:
            self._future.set_result(result)

    def done(self) -> bool:
        return self._future.done()

    def __await__(self) -> Generator[Any, None, Any]:
        return self._future.__await__()


def start(coro: Coroutine[Any, Any, T]) -> "asyncio.Task[T]":
    """Spawn ``coro`` as a new cooperative task on the running loop."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        coro.close()
        raise ConnectionUsageError("start() requires a running event loop; use run() at top level")
    return loop.create_task(coro)


def run(main: Awaitable[T]) -> T:
    """Run ``main`` to completion in a fresh event loop and return its value."""

    async def _runner() -> T:
        return await main

    return asyncio.run(_runner())


async def pause(seconds: float) -> None:
    """Park the current task for ``seconds`` without blocking the loop."""
    if seconds < 0:
        raise ConnectionUsageError("pause() needs a non-negative delay")
    await asyncio.sleep(seconds)
