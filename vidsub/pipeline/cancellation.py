"""Cooperative cancellation threaded through every pipeline stage."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from vidsub.exceptions import PipelineCancelledError

T = TypeVar("T")


class CancellationToken:
    """One-shot cancellation flag shared by the controller and its collaborators.

    Collaborators either poll `raise_if_cancelled()` between steps or wrap
    their single asynchronous boundary in `guard()`, which abandons the
    operation as soon as the token fires.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason = ""

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> bool:
        if self._event.is_set():
            return False
        self._reason = str(reason or "cancelled")
        self._event.set()
        return True

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelledError(self._reason)

    async def wait(self) -> None:
        await self._event.wait()

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the token fires first.

        On cancellation the wrapped operation is cancelled and awaited before
        `PipelineCancelledError` is raised. A coroutine handed to an already
        cancelled token is closed without running.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise PipelineCancelledError(self._reason)
        task = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            waiter.cancel()
            await asyncio.gather(task, waiter, return_exceptions=True)
            raise

        if task in done:
            waiter.cancel()
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise PipelineCancelledError(self._reason)


async def guarded(awaitable: Awaitable[T], token: CancellationToken | None) -> T:
    if token is None:
        return await awaitable
    return await token.guard(awaitable)
