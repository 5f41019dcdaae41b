"""Provider factory and registry."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from vidsub.exceptions import ConfigurationError
from vidsub.providers.ingestion.base import IngestionClient
from vidsub.providers.transcoder.base import TranscoderEngine


def get_transcoder_engine(config: Mapping[str, Any]) -> TranscoderEngine:
    """Get the transcoding engine based on configuration."""
    provider_type = str(config.get("provider", "ffmpeg")).strip().lower()

    match provider_type:
        case "ffmpeg":
            from vidsub.providers.transcoder.engine import FFmpegEngine

            return FFmpegEngine(
                ffmpeg_bin=str(config.get("ffmpeg_bin") or "ffmpeg"),
                work_dir=config.get("work_dir"),
            )
        case _:
            raise ConfigurationError(f"Unknown transcoder provider: {provider_type}")


def get_ingestion_client(config: Mapping[str, Any]) -> IngestionClient:
    """Get the ingestion API client based on configuration."""
    provider_type = str(config.get("provider", "http")).strip().lower()

    match provider_type:
        case "http":
            from vidsub.providers.ingestion.client import HttpIngestionClient

            base_url = str(config.get("base_url") or "").strip()
            if not base_url:
                raise ConfigurationError("Ingestion client requires base_url")
            timeout = config.get("timeout")
            return HttpIngestionClient(
                base_url=base_url,
                timeout=float(timeout) if timeout is not None else None,
            )
        case _:
            raise ConfigurationError(f"Unknown ingestion provider: {provider_type}")
