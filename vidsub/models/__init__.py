"""Core data models for vidsub."""

from vidsub.models.media import (
    AUDIO_MIME_TYPE,
    DEFAULT_TRANSCODE_PARAMETERS,
    AudioArtifact,
    PreviewHandle,
    RemoteVideoHandle,
    SourceMedia,
    SubtitlePrompt,
    TranscodeParameters,
)
from vidsub.models.pipeline import PipelineResult, PipelineState, StateChange

__all__ = [
    "AUDIO_MIME_TYPE",
    "AudioArtifact",
    "DEFAULT_TRANSCODE_PARAMETERS",
    "PipelineResult",
    "PipelineState",
    "PreviewHandle",
    "RemoteVideoHandle",
    "SourceMedia",
    "StateChange",
    "SubtitlePrompt",
    "TranscodeParameters",
]
