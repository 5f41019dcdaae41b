"""Pipeline factory."""

from __future__ import annotations

from vidsub.config import Settings
from vidsub.pipeline.controller import PipelineController, StateObserver
from vidsub.pipeline.progress import ProgressCallback
from vidsub.providers import get_ingestion_client, get_transcoder_engine
from vidsub.providers.transcoder.adapter import TranscoderAdapter
from vidsub.services.preview import PreviewManager


def create_ingestion_pipeline(
    settings: Settings,
    *,
    observer: StateObserver | None = None,
    on_progress: ProgressCallback | None = None,
) -> PipelineController:
    """Build a controller with a fresh engine and API client.

    The engine is shared by every run of the returned controller and is
    loaded on first use.
    """
    transcoder_config = settings.transcoder.model_dump()
    transcoder_config["work_dir"] = settings.transcoder_work_dir
    engine = get_transcoder_engine(transcoder_config)
    client = get_ingestion_client(settings.api.model_dump())
    return PipelineController(
        TranscoderAdapter(engine),
        client,
        observer=observer,
        on_progress=on_progress,
        transcription_enabled=settings.pipeline.transcription_enabled,
        progress_min_step=settings.pipeline.progress_min_step,
        progress_min_interval_s=settings.pipeline.progress_min_interval_s,
    )


def create_preview_manager(settings: Settings) -> PreviewManager:
    """Build a preview manager rooted at the configured preview directory."""
    return PreviewManager(base_dir=settings.preview_dir)
