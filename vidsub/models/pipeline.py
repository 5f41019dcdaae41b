"""Pipeline state model."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from vidsub.models.media import RemoteVideoHandle


class PipelineState(str, Enum):
    IDLE = "idle"
    CONVERTING = "converting"
    UPLOADING = "uploading"
    TRANSCRIBING = "transcribing"
    GENERATING_SUBTITLE = "generating_subtitle"
    SUCCESS = "success"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    @property
    def is_running(self) -> bool:
        return self in _RUNNING_STATES


_TERMINAL_STATES = frozenset({PipelineState.SUCCESS, PipelineState.FAILED, PipelineState.CANCELLED})
_RUNNING_STATES = frozenset(
    {
        PipelineState.CONVERTING,
        PipelineState.UPLOADING,
        PipelineState.TRANSCRIBING,
        PipelineState.GENERATING_SUBTITLE,
    }
)


@dataclass(frozen=True)
class StateChange:
    """A single transition published to the pipeline observer."""

    previous: PipelineState
    state: PipelineState
    video_handle: RemoteVideoHandle | None = None
    error: BaseException | None = None


@dataclass(frozen=True)
class PipelineResult:
    state: PipelineState
    video_handle: RemoteVideoHandle | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.state == PipelineState.SUCCESS
