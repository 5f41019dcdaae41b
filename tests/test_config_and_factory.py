from __future__ import annotations

from pathlib import Path

import pytest

from vidsub.config import ApiConfig, Settings
from vidsub.exceptions import ConfigurationError
from vidsub.models import SourceMedia
from vidsub.pipeline import PipelineController, create_ingestion_pipeline, create_preview_manager
from vidsub.providers import get_ingestion_client, get_transcoder_engine
from vidsub.providers.ingestion import HttpIngestionClient
from vidsub.providers.transcoder import FFmpegEngine


def test_api_config_reads_env_and_normalises_url(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "https://subs.example.com/api/")
    monkeypatch.setenv("API_TIMEOUT", "30")
    cfg = ApiConfig()
    assert cfg.base_url == "https://subs.example.com/api"
    assert cfg.timeout == 30.0


def test_api_config_rejects_non_http_url() -> None:
    with pytest.raises(ConfigurationError):
        ApiConfig(base_url="ftp://nope")


def test_settings_derive_working_directories(settings: Settings) -> None:
    assert Path(settings.transcoder_work_dir) == Path(settings.data_dir) / "transcoder"
    assert Path(settings.preview_dir) == Path(settings.data_dir) / "previews"
    assert settings.api.timeout is None
    assert settings.pipeline.transcription_enabled is False


def test_registry_rejects_unknown_providers() -> None:
    with pytest.raises(ConfigurationError):
        get_transcoder_engine({"provider": "gstreamer"})
    with pytest.raises(ConfigurationError):
        get_ingestion_client({"provider": "grpc", "base_url": "http://x"})
    with pytest.raises(ConfigurationError):
        get_ingestion_client({"provider": "http", "base_url": ""})


def test_factory_wires_engine_client_and_flags(settings: Settings) -> None:
    settings.api.base_url = "http://api.test"
    settings.api.timeout = 12.5
    settings.pipeline.transcription_enabled = True

    controller = create_ingestion_pipeline(settings)

    assert isinstance(controller, PipelineController)
    assert isinstance(controller.transcoder.engine, FFmpegEngine)
    assert not controller.transcoder.engine.loaded
    assert isinstance(controller.client, HttpIngestionClient)
    assert controller.client.base_url == "http://api.test"
    assert controller.client.timeout == 12.5
    assert controller.transcription_enabled is True


def test_preview_manager_factory_uses_configured_directory(settings: Settings) -> None:
    manager = create_preview_manager(settings)
    media = SourceMedia(data=b"\x00\x01", mime_type="video/mp4", name="clip.mp4")

    handle = manager.create_preview(media)

    assert handle.path.parent == Path(settings.preview_dir)
    assert handle.url.startswith("file://")
    manager.close()
    assert not handle.path.exists()
    assert Path(settings.preview_dir).is_dir()
