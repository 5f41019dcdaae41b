from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from vidsub.config import Settings
from vidsub.models import PipelineState, SourceMedia, StateChange
from vidsub.pipeline import create_ingestion_pipeline, create_preview_manager
from vidsub.utils.logging_setup import setup_logging

logger = logging.getLogger("vidsub.scripts.run_local_pipeline")


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Convert a local video to audio, upload it and request subtitles."
    )
    parser.add_argument("--media", required=True, help="Path to a local video file")
    parser.add_argument("--prompt", default="", help="Subtitle prompt, e.g. 'max_line_length: 42'")
    parser.add_argument("--api-base-url", default=None, help="Override API_BASE_URL")
    parser.add_argument("--ffmpeg-bin", default=None, help="Override TRANSCODER_FFMPEG_BIN")
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Print a local file:// preview url for the media before running",
    )
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    parser.add_argument(
        "--with-transcription",
        action="store_true",
        help="Also request a raw transcription before the subtitles",
    )
    return parser.parse_args()


def _print_change(change: StateChange) -> None:
    line = f"state={change.state.value}"
    if change.video_handle is not None:
        line += f" video_id={change.video_handle.id}"
    if change.error is not None:
        line += f" error={change.error}"
    print(line, flush=True)


def _print_progress(state: PipelineState, progress: float, message: str) -> None:
    print(f"  {state.value} {round(progress * 100)}% {message}", flush=True)


async def _run() -> int:
    args = _parse_args()
    media_path = Path(args.media)
    if not media_path.exists():
        raise SystemExit(f"Media not found: {media_path}")

    settings = Settings()
    if args.api_base_url:
        settings.api.base_url = str(args.api_base_url).rstrip("/")
    if args.ffmpeg_bin:
        settings.transcoder.ffmpeg_bin = str(args.ffmpeg_bin)
    if args.with_transcription:
        settings.pipeline.transcription_enabled = True
    setup_logging(settings, level="DEBUG" if args.verbose else None)

    media = SourceMedia.from_path(media_path)
    previews = create_preview_manager(settings)
    if args.preview:
        print(f"preview={previews.create_preview(media).url}", flush=True)

    controller = create_ingestion_pipeline(
        settings,
        observer=_print_change,
        on_progress=_print_progress,
    )
    try:
        result = await controller.run(media, args.prompt)
    finally:
        await controller.close()
        previews.close()

    if not result.ok:
        logger.error("pipeline ended in %s: %s", result.state.value, result.error)
        return 1
    return 0


def main() -> None:
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
