from __future__ import annotations

import asyncio
import inspect

import pytest

from vidsub.exceptions import PipelineCancelledError
from vidsub.pipeline.cancellation import CancellationToken, guarded


@pytest.mark.asyncio
async def test_guard_returns_result_when_not_cancelled() -> None:
    token = CancellationToken()

    async def _work() -> int:
        await asyncio.sleep(0)
        return 42

    assert await token.guard(_work()) == 42
    assert await guarded(_work(), None) == 42


@pytest.mark.asyncio
async def test_guard_abandons_operation_when_token_fires() -> None:
    token = CancellationToken()
    started = asyncio.Event()
    was_cancelled = False

    async def _hang() -> None:
        nonlocal was_cancelled
        started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            was_cancelled = True
            raise

    task = asyncio.create_task(token.guard(_hang()))
    await started.wait()
    assert token.cancel("stop") is True
    with pytest.raises(PipelineCancelledError):
        await task
    assert was_cancelled
    assert token.reason == "stop"


@pytest.mark.asyncio
async def test_cancelled_token_rejects_new_work_and_cancels_once() -> None:
    token = CancellationToken()
    assert token.cancel() is True
    assert token.cancel() is False
    assert token.cancelled

    async def _never_awaited() -> None:
        return None

    coro = _never_awaited()
    with pytest.raises(PipelineCancelledError):
        await token.guard(coro)
    assert inspect.getcoroutinestate(coro) == inspect.CORO_CLOSED
    with pytest.raises(PipelineCancelledError):
        await guarded(_never_awaited(), token)
    with pytest.raises(PipelineCancelledError):
        token.raise_if_cancelled()


@pytest.mark.asyncio
async def test_cancelling_the_guarding_task_waits_for_the_operation_to_unwind() -> None:
    token = CancellationToken()
    started = asyncio.Event()
    unwound = False

    async def _hang() -> None:
        nonlocal unwound
        started.set()
        try:
            await asyncio.Event().wait()
        finally:
            await asyncio.sleep(0)
            unwound = True

    task = asyncio.create_task(token.guard(_hang()))
    await started.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert unwound
    assert not token.cancelled
