"""Media and artifact models exchanged between pipeline stages."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path

from vidsub.exceptions import ConfigurationError

SubtitlePrompt = str

AUDIO_MIME_TYPE = "audio/mpeg"
DEFAULT_VIDEO_MIME_TYPE = "video/mp4"


@dataclass(frozen=True)
class SourceMedia:
    """The user-selected input file, held in memory."""

    data: bytes = field(repr=False)
    mime_type: str = DEFAULT_VIDEO_MIME_TYPE
    name: str = "input.mp4"

    def __post_init__(self) -> None:
        if not self.data:
            raise ConfigurationError(f"source media {self.name!r} is empty")

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @classmethod
    def from_path(cls, path: str | Path, *, mime_type: str | None = None) -> "SourceMedia":
        p = Path(path)
        if not p.is_file():
            raise ConfigurationError(f"media not found: {p}")
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(
            data=p.read_bytes(),
            mime_type=str(mime_type or guessed or DEFAULT_VIDEO_MIME_TYPE),
            name=p.name,
        )


@dataclass(frozen=True)
class TranscodeParameters:
    """Fixed encoding policy applied by the transcoder adapter."""

    stream_selector: str = "0:a:0"
    codec: str = "libmp3lame"
    bitrate: str = "20k"
    input_name: str = "input.mp4"
    output_name: str = "output.mp3"

    def to_argv(self) -> list[str]:
        return [
            "-i",
            self.input_name,
            "-map",
            self.stream_selector,
            "-b:a",
            self.bitrate,
            "-acodec",
            self.codec,
            self.output_name,
        ]


DEFAULT_TRANSCODE_PARAMETERS = TranscodeParameters()


@dataclass(frozen=True)
class AudioArtifact:
    data: bytes = field(repr=False)
    mime_type: str = AUDIO_MIME_TYPE
    filename: str = "audio.mp3"

    @property
    def size_bytes(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class RemoteVideoHandle:
    """Server-assigned identity of an uploaded audio artifact."""

    id: str

    def __post_init__(self) -> None:
        if not str(self.id or "").strip():
            raise ValueError("video id must be a non-empty string")

    def __str__(self) -> str:
        return self.id


@dataclass(frozen=True)
class PreviewHandle:
    """Locally addressable reference to a selected source file."""

    url: str
    path: Path
    slot: str
