"""Ingestion API client base class."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vidsub.models.media import AudioArtifact, RemoteVideoHandle, SubtitlePrompt
from vidsub.pipeline.cancellation import CancellationToken


class IngestionClient(ABC):
    """Remote operations the ingestion pipeline depends on."""

    @abstractmethod
    async def upload_audio(
        self,
        artifact: AudioArtifact,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> RemoteVideoHandle:
        """Upload the audio artifact and return the server-assigned handle."""
        ...

    @abstractmethod
    async def request_subtitle(
        self,
        handle: RemoteVideoHandle,
        prompt: SubtitlePrompt,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        """Ask the service to generate subtitles for an uploaded video."""
        ...

    async def request_transcription(
        self,
        handle: RemoteVideoHandle,
        prompt: SubtitlePrompt,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        raise NotImplementedError

    async def close(self) -> None:  # pragma: no cover
        return None
