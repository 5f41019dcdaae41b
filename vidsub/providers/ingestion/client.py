"""HTTP ingestion client for the video/subtitle API."""

from __future__ import annotations

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from vidsub.exceptions import SubtitleRequestError, TranscriptionRequestError, UploadError
from vidsub.models.media import AudioArtifact, RemoteVideoHandle, SubtitlePrompt
from vidsub.pipeline.cancellation import CancellationToken, guarded
from vidsub.providers.ingestion.base import IngestionClient

logger = logging.getLogger(__name__)

_JSON_HEADERS = {"Content-Type": "application/json"}


def encode_prompt_body(prompt: SubtitlePrompt) -> bytes:
    """Serialize `{"prompt": ...}` with compact separators."""
    return json.dumps(
        {"prompt": str(prompt or "")},
        ensure_ascii=False,
        separators=(",", ":"),
    ).encode("utf-8")


def parse_video_id(payload: Any) -> str:
    """Extract the nested `video.id` from an upload response body."""
    if not isinstance(payload, dict):
        raise ValueError("response body is not a JSON object")
    video = payload.get("video")
    if not isinstance(video, dict):
        raise ValueError("response body has no `video` object")
    raw = video.get("id")
    if isinstance(raw, bool) or not isinstance(raw, (str, int)):
        raise ValueError("`video.id` is missing or not a string")
    video_id = str(raw).strip()
    if not video_id:
        raise ValueError("`video.id` is empty")
    return video_id


class HttpIngestionClient(IngestionClient):
    """Ingestion API client over a pooled `httpx.AsyncClient`.

    No retries are attempted: every failure is reported to the caller as a
    typed error.
    """

    def __init__(self, base_url: str, timeout: float | None = None) -> None:
        """Initialize the client.

        Args:
            base_url: API root (e.g. http://localhost:3333)
            timeout: Per-request timeout in seconds; None waits indefinitely
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the connection-pooled HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
            )
        return self._client

    def _video_path(self, handle: RemoteVideoHandle, action: str) -> str:
        return f"/videos/{quote(handle.id, safe='')}/{action}"

    async def upload_audio(
        self,
        artifact: AudioArtifact,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> RemoteVideoHandle:
        client = await self._get_client()
        files = {"file": (artifact.filename, artifact.data, artifact.mime_type)}
        logger.info("upload start (size_bytes=%d)", artifact.size_bytes)
        try:
            response = await guarded(client.post("/videos", files=files), cancel_token)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UploadError(
                f"upload rejected (status={exc.response.status_code})",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise UploadError(f"upload failed: {exc}") from exc

        try:
            video_id = parse_video_id(response.json())
        except ValueError as exc:
            raise UploadError(
                f"malformed upload response: {exc}",
                status_code=response.status_code,
            ) from exc

        logger.info("upload done (video_id=%s)", video_id)
        return RemoteVideoHandle(id=video_id)

    async def _post_prompt(
        self,
        path: str,
        prompt: SubtitlePrompt,
        cancel_token: CancellationToken | None,
    ) -> httpx.Response:
        client = await self._get_client()
        response = await guarded(
            client.post(path, content=encode_prompt_body(prompt), headers=_JSON_HEADERS),
            cancel_token,
        )
        response.raise_for_status()
        return response

    async def request_subtitle(
        self,
        handle: RemoteVideoHandle,
        prompt: SubtitlePrompt,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        logger.info("subtitle request start (video_id=%s)", handle.id)
        try:
            await self._post_prompt(self._video_path(handle, "subtitle"), prompt, cancel_token)
        except httpx.HTTPStatusError as exc:
            raise SubtitleRequestError(
                f"subtitle request rejected (status={exc.response.status_code})",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise SubtitleRequestError(f"subtitle request failed: {exc}") from exc
        logger.info("subtitle request done (video_id=%s)", handle.id)

    async def request_transcription(
        self,
        handle: RemoteVideoHandle,
        prompt: SubtitlePrompt,
        *,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        logger.info("transcription request start (video_id=%s)", handle.id)
        try:
            await self._post_prompt(self._video_path(handle, "transcription"), prompt, cancel_token)
        except httpx.HTTPStatusError as exc:
            raise TranscriptionRequestError(
                f"transcription request rejected (status={exc.response.status_code})",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TranscriptionRequestError(f"transcription request failed: {exc}") from exc
        logger.info("transcription request done (video_id=%s)", handle.id)

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpIngestionClient":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()
