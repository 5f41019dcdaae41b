"""Advisory progress reporting.

Progress is observability only: the controller never derives state
transitions from it.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

from vidsub.models.pipeline import PipelineState

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[PipelineState, float, str], None]


class ProgressReporter(Protocol):
    async def report(self, progress: float, message: str) -> None: ...


class ProgressRelay:
    """Clamp, de-duplicate and rate-limit progress before forwarding it.

    One relay is owned by the controller per stage; values never move
    backwards within a stage and 1.0 is always forwarded.
    """

    def __init__(
        self,
        *,
        state: PipelineState,
        callback: ProgressCallback | None,
        min_step: float = 0.05,
        min_interval_s: float = 1.0,
    ) -> None:
        self._state = state
        self._callback = callback
        self._min_step = max(0.0, float(min_step))
        self._min_interval_s = max(0.0, float(min_interval_s))
        self._last_progress = -1.0
        self._last_update_at = 0.0
        self.closed = False

    @property
    def last_progress(self) -> float | None:
        return self._last_progress if self._last_progress >= 0 else None

    def close(self) -> None:
        self.closed = True

    async def report(self, progress: float, message: str) -> None:
        if self.closed:
            return
        value = float(progress)
        if value != value:  # NaN
            return
        value = min(1.0, max(0.0, value))
        msg = str(message or "").strip() or self._state.value

        if value < self._last_progress:
            value = self._last_progress

        now = time.monotonic()
        should_emit = False
        if self._last_progress < 0:
            should_emit = True
        elif value >= 1.0 and self._last_progress < 1.0:
            should_emit = True
        elif value >= self._last_progress + self._min_step and value > self._last_progress:
            should_emit = True
        elif (
            self._min_interval_s > 0
            and value > self._last_progress
            and now - self._last_update_at >= self._min_interval_s
        ):
            should_emit = True

        if not should_emit:
            return

        self._last_progress = value
        self._last_update_at = now
        logger.debug("progress (state=%s, progress=%.3f, message=%s)", self._state.value, value, msg)
        if self._callback is None:
            return
        try:
            self._callback(self._state, value, msg)
        except Exception:
            logger.exception("progress callback failed (state=%s)", self._state.value)
