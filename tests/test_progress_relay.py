from __future__ import annotations

import pytest

from vidsub.models import PipelineState
from vidsub.pipeline.progress import ProgressRelay


@pytest.mark.asyncio
async def test_progress_relay_rate_limits_by_step() -> None:
    calls: list[tuple[PipelineState, float, str]] = []
    relay = ProgressRelay(
        state=PipelineState.CONVERTING,
        callback=lambda s, p, m: calls.append((s, p, m)),
        min_step=0.1,
        min_interval_s=0.0,
    )

    await relay.report(0.0, "start")
    assert calls == [(PipelineState.CONVERTING, 0.0, "start")]

    await relay.report(0.05, "small")
    assert len(calls) == 1

    await relay.report(0.1, "step")
    assert calls[-1][1] == pytest.approx(0.1)

    await relay.report(0.02, "backwards")
    assert len(calls) == 2

    await relay.report(7.0, "")
    assert calls[-1] == (PipelineState.CONVERTING, 1.0, "converting")
    assert relay.last_progress == 1.0

    await relay.report(1.0, "again")
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_progress_relay_ignores_reports_after_close_and_callback_errors() -> None:
    def _boom(_state, _progress, _message) -> None:  # noqa: ANN001
        raise RuntimeError("ui bug")

    relay = ProgressRelay(state=PipelineState.CONVERTING, callback=_boom, min_interval_s=0.0)
    await relay.report(0.5, "half")
    assert relay.last_progress == 0.5

    relay.close()
    await relay.report(0.9, "late")
    assert relay.last_progress == 0.5
