"""Video-to-audio transcoding with the fixed ingestion policy."""

from __future__ import annotations

import logging

from vidsub.exceptions import PipelineCancelledError, TranscodeError
from vidsub.models.media import (
    AUDIO_MIME_TYPE,
    DEFAULT_TRANSCODE_PARAMETERS,
    AudioArtifact,
    SourceMedia,
    TranscodeParameters,
)
from vidsub.pipeline.cancellation import CancellationToken, guarded
from vidsub.pipeline.progress import ProgressReporter
from vidsub.providers.transcoder.base import TranscoderEngine

logger = logging.getLogger(__name__)

_STDERR_PAYLOAD_CHARS = 4000


class TranscoderAdapter:
    """Convert a source video into a compact MP3 of its first audio stream.

    The adapter does not queue: an overlapping `transcode()` call is rejected
    before it touches the engine files of the running job.
    """

    def __init__(
        self,
        engine: TranscoderEngine,
        params: TranscodeParameters = DEFAULT_TRANSCODE_PARAMETERS,
    ) -> None:
        self.engine = engine
        self.params = params
        self._active = False

    async def transcode(
        self,
        media: SourceMedia,
        params: TranscodeParameters | None = None,
        *,
        progress: ProgressReporter | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> AudioArtifact:
        params = params or self.params
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        if self._active or self.engine.busy:
            raise TranscodeError("engine is busy with another job")
        self._active = True

        logger.info("transcode start (name=%s, size_bytes=%d)", media.name, media.size_bytes)
        try:
            await guarded(self.engine.load(), cancel_token)
            await guarded(self.engine.write_file(params.input_name, media.data), cancel_token)
            if progress is not None:
                await progress.report(0.0, "converting")

            result = await self.engine.exec(
                params.to_argv(),
                progress=progress,
                cancel_token=cancel_token,
            )
            if not result.ok:
                stderr = result.stderr_text()
                raise TranscodeError(
                    f"ffmpeg failed (code={result.returncode}).\n"
                    f"argv: {' '.join(params.to_argv())}\n"
                    f"stderr: {stderr[-_STDERR_PAYLOAD_CHARS:]}",
                    returncode=result.returncode,
                    stderr=stderr,
                )
            data = await guarded(self.engine.read_file(params.output_name), cancel_token)
        except (TranscodeError, PipelineCancelledError):
            raise
        except OSError as exc:
            raise TranscodeError(f"engine file system error: {exc}") from exc
        finally:
            try:
                await self._cleanup(params)
            finally:
                self._active = False

        if not data:
            raise TranscodeError(f"ffmpeg produced an empty {params.output_name}")

        if progress is not None:
            await progress.report(1.0, "converted")
        logger.info("transcode done (name=%s, audio_size_bytes=%d)", media.name, len(data))
        return AudioArtifact(data=bytes(data), mime_type=AUDIO_MIME_TYPE)

    async def _cleanup(self, params: TranscodeParameters) -> None:
        for name in (params.input_name, params.output_name):
            try:
                await self.engine.delete_file(name)
            except (OSError, TranscodeError) as exc:
                logger.warning("failed to delete engine file %s: %s", name, exc)
