from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from vidsub.exceptions import PipelineCancelledError, SubtitleRequestError, TranscriptionRequestError, UploadError
from vidsub.models import AudioArtifact, RemoteVideoHandle
from vidsub.pipeline.cancellation import CancellationToken
from vidsub.providers.ingestion.client import HttpIngestionClient, encode_prompt_body, parse_video_id


def _client(handler) -> HttpIngestionClient:  # noqa: ANN001
    client = HttpIngestionClient(base_url="http://api.test/")
    client._client = httpx.AsyncClient(base_url=client.base_url, transport=httpx.MockTransport(handler))
    return client


def test_encode_prompt_body_is_compact_utf8() -> None:
    assert encode_prompt_body("max_line_length: 42") == b'{"prompt":"max_line_length: 42"}'
    assert encode_prompt_body("") == b'{"prompt":""}'
    assert encode_prompt_body("legendas, vídeo") == '{"prompt":"legendas, vídeo"}'.encode("utf-8")


def test_parse_video_id_accepts_nested_string_or_int() -> None:
    assert parse_video_id({"video": {"id": "abc-123"}}) == "abc-123"
    assert parse_video_id({"video": {"id": 7}}) == "7"
    for bad in ([], {"id": "x"}, {"video": {}}, {"video": {"id": ""}}, {"video": {"id": True}}):
        with pytest.raises(ValueError):
            parse_video_id(bad)


@pytest.mark.asyncio
async def test_upload_audio_sends_multipart_file_field() -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"video": {"id": "vid-1", "name": "audio.mp3"}})

    client = _client(_handler)
    try:
        handle = await client.upload_audio(AudioArtifact(data=b"ID3audio"))
    finally:
        await client.close()

    assert handle == RemoteVideoHandle(id="vid-1")
    (request,) = seen
    assert request.method == "POST"
    assert request.url.path == "/videos"
    assert request.headers["content-type"].startswith("multipart/form-data")
    body = request.content
    assert b'name="file"; filename="audio.mp3"' in body
    assert b"Content-Type: audio/mpeg" in body
    assert b"ID3audio" in body


@pytest.mark.asyncio
async def test_upload_audio_server_error_raises_upload_error() -> None:
    client = _client(lambda _req: httpx.Response(500, json={"message": "boom"}))
    try:
        with pytest.raises(UploadError) as excinfo:
            await client.upload_audio(AudioArtifact(data=b"x"))
    finally:
        await client.close()
    assert excinfo.value.status_code == 500
    assert excinfo.value.error_code == "UPLOAD_FAILED"


@pytest.mark.asyncio
async def test_upload_audio_malformed_body_raises_upload_error() -> None:
    client = _client(lambda _req: httpx.Response(200, content=b"<html>ok</html>"))
    try:
        with pytest.raises(UploadError, match="malformed"):
            await client.upload_audio(AudioArtifact(data=b"x"))
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_upload_audio_network_error_raises_upload_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(_handler)
    try:
        with pytest.raises(UploadError, match="connection refused"):
            await client.upload_audio(AudioArtifact(data=b"x"))
    finally:
        await client.close()


@pytest.mark.asyncio
async def test_request_subtitle_posts_exact_json_body() -> None:
    seen: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client = _client(_handler)
    try:
        await client.request_subtitle(RemoteVideoHandle(id="vid-1"), "max_line_length: 42")
    finally:
        await client.close()

    (request,) = seen
    assert request.url.path == "/videos/vid-1/subtitle"
    assert request.headers["content-type"] == "application/json"
    assert request.content == b'{"prompt":"max_line_length: 42"}'


@pytest.mark.asyncio
async def test_request_subtitle_rejection_raises() -> None:
    client = _client(lambda _req: httpx.Response(404))
    try:
        with pytest.raises(SubtitleRequestError) as excinfo:
            await client.request_subtitle(RemoteVideoHandle(id="missing"), "")
    finally:
        await client.close()
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_request_transcription_uses_reserved_endpoint() -> None:
    paths: list[str] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        if request.url.path.endswith("/transcription"):
            assert json.loads(request.content) == {"prompt": "palavras, chave"}
            return httpx.Response(200, json={"transcription": "..."})
        return httpx.Response(400)

    client = _client(_handler)
    try:
        await client.request_transcription(RemoteVideoHandle(id="vid-9"), "palavras, chave")
        with pytest.raises(TranscriptionRequestError):
            await client.request_transcription(RemoteVideoHandle(id="vid-9"), "x")
    finally:
        await client.close()
    assert paths[0] == "/videos/vid-9/transcription"


@pytest.mark.asyncio
async def test_cancel_token_abandons_hung_request() -> None:
    release = asyncio.Event()

    async def _handler(_request: httpx.Request) -> httpx.Response:
        await release.wait()
        return httpx.Response(200, json={"video": {"id": "late"}})

    client = _client(_handler)
    token = CancellationToken()
    try:
        task = asyncio.create_task(client.upload_audio(AudioArtifact(data=b"x"), cancel_token=token))
        await asyncio.sleep(0.05)
        token.cancel()
        with pytest.raises(PipelineCancelledError):
            await asyncio.wait_for(task, timeout=2)
    finally:
        await client.close()
