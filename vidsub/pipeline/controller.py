"""Ingestion pipeline controller (transcode -> upload -> subtitle request)."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from vidsub.error_codes import ErrorCode
from vidsub.exceptions import (
    InvalidStateError,
    PipelineCancelledError,
    SubtitleRequestError,
    TranscodeError,
    TranscriptionRequestError,
    UploadError,
    VidsubError,
)
from vidsub.models.media import AudioArtifact, RemoteVideoHandle, SourceMedia, SubtitlePrompt
from vidsub.models.pipeline import PipelineResult, PipelineState, StateChange
from vidsub.pipeline.cancellation import CancellationToken
from vidsub.pipeline.progress import ProgressCallback, ProgressRelay
from vidsub.providers.ingestion.base import IngestionClient
from vidsub.providers.transcoder.adapter import TranscoderAdapter

logger = logging.getLogger(__name__)

StateObserver = Callable[[StateChange], None]


def _error_code(err: BaseException) -> str:
    code = getattr(err, "error_code", None) or ErrorCode.UNKNOWN
    return code.value if isinstance(code, ErrorCode) else str(code)


def _wrap_stage_error(stage: PipelineState, exc: Exception) -> VidsubError:
    if isinstance(exc, VidsubError):
        return exc
    message = f"unexpected {type(exc).__name__}: {exc}"
    match stage:
        case PipelineState.CONVERTING:
            err: VidsubError = TranscodeError(message)
        case PipelineState.UPLOADING:
            err = UploadError(message)
        case PipelineState.TRANSCRIBING:
            err = TranscriptionRequestError(message)
        case PipelineState.GENERATING_SUBTITLE:
            err = SubtitleRequestError(message)
        case _:
            err = VidsubError(message)
    err.__cause__ = exc
    return err


class PipelineController:
    """Drive one ingestion run at a time and publish every state transition.

    Transitions are delivered synchronously to the single registered observer
    before the next stage starts. Progress from the transcoder is advisory and
    goes to `on_progress` only.
    """

    def __init__(
        self,
        transcoder: TranscoderAdapter,
        client: IngestionClient,
        *,
        observer: StateObserver | None = None,
        on_progress: ProgressCallback | None = None,
        transcription_enabled: bool = False,
        progress_min_step: float = 0.05,
        progress_min_interval_s: float = 1.0,
    ) -> None:
        self.transcoder = transcoder
        self.client = client
        self._observer = observer
        self._on_progress = on_progress
        self.transcription_enabled = bool(transcription_enabled)
        self._progress_min_step = float(progress_min_step)
        self._progress_min_interval_s = float(progress_min_interval_s)

        self._state = PipelineState.IDLE
        self._history: list[PipelineState] = [PipelineState.IDLE]
        self._video_handle: RemoteVideoHandle | None = None
        self._error: BaseException | None = None
        self._token: CancellationToken | None = None
        self._task: asyncio.Task[PipelineResult] | None = None
        self._run_id = 0

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def history(self) -> tuple[PipelineState, ...]:
        """States visited by the current run, starting with IDLE."""
        return tuple(self._history)

    @property
    def video_handle(self) -> RemoteVideoHandle | None:
        return self._video_handle

    @property
    def error(self) -> BaseException | None:
        return self._error

    @property
    def task(self) -> asyncio.Task[PipelineResult] | None:
        return self._task

    def set_observer(self, observer: StateObserver | None) -> None:
        """Register the observer, replacing any previous one."""
        self._observer = observer

    def _result(self) -> PipelineResult:
        return PipelineResult(state=self._state, video_handle=self._video_handle, error=self._error)

    def _transition(self, state: PipelineState, *, error: BaseException | None = None) -> None:
        previous = self._state
        self._state = state
        self._history.append(state)
        logger.info(
            "pipeline transition (run=%d, %s -> %s)", self._run_id, previous.value, state.value
        )
        self._publish(
            StateChange(previous=previous, state=state, video_handle=self._video_handle, error=error)
        )

    def _publish(self, change: StateChange) -> None:
        if self._observer is None:
            return
        try:
            self._observer(change)
        except Exception:
            logger.exception("pipeline observer failed (state=%s)", change.state.value)

    def reset(self) -> None:
        """Return a finished controller to IDLE, dropping the previous run's results."""
        if self._state.is_running:
            raise InvalidStateError("reset", self._state.value)
        if self._state == PipelineState.IDLE:
            return
        previous = self._state
        self._state = PipelineState.IDLE
        self._history = [PipelineState.IDLE]
        self._video_handle = None
        self._error = None
        self._token = None
        logger.info("pipeline transition (run=%d, %s -> idle)", self._run_id, previous.value)
        self._publish(StateChange(previous=previous, state=PipelineState.IDLE))

    def start(self, media: SourceMedia, prompt: SubtitlePrompt = "") -> asyncio.Task[PipelineResult]:
        """Begin a run and return the task driving it.

        Raises InvalidStateError, without any transition, while a run is in
        flight. Must be called from a running event loop. A cancelled run
        that is still unwinding is awaited before the new run converts.
        """
        if self._state.is_running:
            raise InvalidStateError("start", self._state.value)
        loop = asyncio.get_running_loop()
        draining = self._task if self._task is not None and not self._task.done() else None
        if self._state.is_terminal:
            self.reset()

        self._run_id += 1
        token = CancellationToken()
        self._token = token
        logger.info(
            "pipeline start (run=%d, name=%s, size_bytes=%d, prompt_chars=%d)",
            self._run_id,
            media.name,
            media.size_bytes,
            len(prompt or ""),
        )
        self._transition(PipelineState.CONVERTING)
        self._task = loop.create_task(
            self._run(media, str(prompt or ""), token, draining),
            name=f"vidsub-pipeline-{self._run_id}",
        )
        return self._task

    async def run(self, media: SourceMedia, prompt: SubtitlePrompt = "") -> PipelineResult:
        return await self.start(media, prompt)

    def cancel(self, reason: str = "cancelled by caller") -> bool:
        """Cancel the in-flight run; returns False when there is nothing to cancel.

        The token is set and the run task is cancelled, so collaborators that
        never look at the token are interrupted as well.
        """
        if not self._state.is_running or self._token is None:
            return False
        self._token.cancel(reason)
        self._error = None
        self._transition(PipelineState.CANCELLED)
        if self._task is not None and not self._task.done():
            self._task.cancel(reason)
        return True

    def _owns(self, token: CancellationToken) -> bool:
        return self._token is token

    def _checkpoint(self, token: CancellationToken) -> None:
        token.raise_if_cancelled()
        if not self._owns(token):
            raise PipelineCancelledError("superseded by a newer run")

    async def _convert(self, media: SourceMedia, token: CancellationToken) -> AudioArtifact:
        relay = ProgressRelay(
            state=PipelineState.CONVERTING,
            callback=self._on_progress,
            min_step=self._progress_min_step,
            min_interval_s=self._progress_min_interval_s,
        )
        try:
            return await self.transcoder.transcode(media, progress=relay, cancel_token=token)
        finally:
            relay.close()

    async def _run(
        self,
        media: SourceMedia,
        prompt: SubtitlePrompt,
        token: CancellationToken,
        draining: asyncio.Task[PipelineResult] | None = None,
    ) -> PipelineResult:
        run_id = self._run_id
        handle: RemoteVideoHandle | None = None
        try:
            if draining is not None:
                await asyncio.gather(draining, return_exceptions=True)
                self._checkpoint(token)

            audio = await self._convert(media, token)
            self._checkpoint(token)

            self._transition(PipelineState.UPLOADING)
            handle = await self.client.upload_audio(audio, cancel_token=token)
            self._checkpoint(token)
            self._video_handle = handle
            del audio

            if self.transcription_enabled:
                self._transition(PipelineState.TRANSCRIBING)
                await self.client.request_transcription(handle, prompt, cancel_token=token)
                self._checkpoint(token)

            self._transition(PipelineState.GENERATING_SUBTITLE)
            await self.client.request_subtitle(handle, prompt, cancel_token=token)
            self._checkpoint(token)

            self._transition(PipelineState.SUCCESS)
            logger.info("pipeline done (run=%d, video_id=%s)", run_id, handle.id)
        except PipelineCancelledError:
            if self._owns(token) and self._state.is_running:
                self._transition(PipelineState.CANCELLED)
            logger.info("pipeline cancelled (run=%d)", run_id)
        except asyncio.CancelledError:
            if not token.cancelled:
                # cancelled from outside the controller
                token.cancel("task cancelled")
                if self._owns(token) and self._state.is_running:
                    self._transition(PipelineState.CANCELLED)
                raise
            current = asyncio.current_task()
            if current is not None:
                current.uncancel()
            logger.info("pipeline cancelled (run=%d)", run_id)
        except Exception as exc:
            if token.cancelled or not self._owns(token):
                logger.info("pipeline collaborator failed after cancellation (run=%d): %s", run_id, exc)
            else:
                stage = self._state
                err = _wrap_stage_error(stage, exc)
                self._error = err
                logger.error(
                    "pipeline stage failed (run=%d, stage=%s, error_code=%s): %s",
                    run_id,
                    stage.value,
                    _error_code(err),
                    err,
                    exc_info=err,
                )
                self._transition(PipelineState.FAILED, error=err)

        if not self._owns(token):
            return PipelineResult(state=PipelineState.CANCELLED, video_handle=handle)
        return self._result()

    async def close(self) -> None:
        """Cancel any in-flight run, wait for it to unwind and release the collaborators."""
        self.cancel("controller closed")
        task = self._task
        if task is not None and not task.done():
            await asyncio.gather(task, return_exceptions=True)
        await self.client.close()
        await self.transcoder.engine.close()
