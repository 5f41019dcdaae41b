"""FFmpeg-backed transcoding engine."""

from __future__ import annotations

import asyncio
import logging
import shutil
import subprocess
import tempfile
from collections import deque
from collections.abc import Sequence
from pathlib import Path

from vidsub.exceptions import PipelineCancelledError, TranscodeError
from vidsub.pipeline.cancellation import CancellationToken, guarded
from vidsub.pipeline.progress import ProgressReporter
from vidsub.providers.transcoder.base import TranscoderEngine
from vidsub.utils.ffmpeg import out_time_s, parse_duration_s, parse_progress_line, resolve_ffmpeg_bin
from vidsub.utils.subprocess import RunResult, run_subprocess

logger = logging.getLogger(__name__)

_ENGINE_FLAGS = ["-hide_banner", "-nostdin", "-nostats", "-y", "-progress", "pipe:1"]
_STDERR_TAIL_LINES = 50
_PROBE_TIMEOUT_S = 30.0


class FFmpegEngine(TranscoderEngine):
    """Run ffmpeg jobs inside a private working directory.

    The working directory plays the role of an in-memory file system: inputs
    are written under logical names, ffmpeg runs with it as CWD, and outputs
    are read back by name. Only one job may run at a time.
    """

    def __init__(self, ffmpeg_bin: str = "ffmpeg", work_dir: str | None = None) -> None:
        self._requested_bin = ffmpeg_bin
        self._requested_work_dir = work_dir
        self.ffmpeg_bin: str | None = None
        self.work_dir: Path | None = None
        self._owns_work_dir = False
        self._load_lock = asyncio.Lock()
        self._loaded = False
        self._busy = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def busy(self) -> bool:
        return self._busy

    async def load(self) -> None:
        if self._loaded:
            return
        async with self._load_lock:
            if self._loaded:
                return
            ffmpeg_bin = resolve_ffmpeg_bin(self._requested_bin)
            try:
                result = await run_subprocess(
                    [ffmpeg_bin, "-hide_banner", "-version"], timeout_s=_PROBE_TIMEOUT_S
                )
            except subprocess.TimeoutExpired as exc:
                raise TranscodeError(f"ffmpeg -version timed out: {ffmpeg_bin}") from exc
            except (FileNotFoundError, PermissionError) as exc:
                raise TranscodeError(
                    f"ffmpeg binary not found: {ffmpeg_bin}. "
                    "Install ffmpeg and ensure it is in PATH (or install `imageio-ffmpeg` in the env, "
                    "or set TRANSCODER_FFMPEG_BIN)."
                ) from exc
            if not result.ok:
                raise TranscodeError(
                    f"ffmpeg -version failed (code={result.returncode})",
                    returncode=result.returncode,
                    stderr=result.stderr_text(),
                )

            if self._requested_work_dir:
                work_dir = Path(self._requested_work_dir)
                work_dir.mkdir(parents=True, exist_ok=True)
                self._owns_work_dir = False
            else:
                work_dir = Path(tempfile.mkdtemp(prefix="vidsub-ffmpeg-"))
                self._owns_work_dir = True

            self.ffmpeg_bin = ffmpeg_bin
            self.work_dir = work_dir
            self._loaded = True
            version = result.stdout.decode(errors="ignore").splitlines()[:1]
            logger.info(
                "ffmpeg engine loaded (bin=%s, work_dir=%s, version=%s)",
                ffmpeg_bin,
                work_dir,
                version[0] if version else "?",
            )

    def _path(self, name: str) -> Path:
        if self.work_dir is None:
            raise TranscodeError("engine is not loaded")
        raw = str(name or "").strip()
        if not raw or raw in {".", ".."} or "/" in raw or "\\" in raw:
            raise TranscodeError(f"invalid engine file name: {name!r}")
        return self.work_dir / raw

    async def write_file(self, name: str, data: bytes) -> None:
        await self.load()
        path = self._path(name)
        await asyncio.to_thread(path.write_bytes, bytes(data))
        logger.debug("engine write_file (name=%s, size_bytes=%d)", name, len(data))

    async def read_file(self, name: str) -> bytes:
        await self.load()
        path = self._path(name)
        if not path.is_file():
            raise TranscodeError(f"output file missing: {name}")
        return await asyncio.to_thread(path.read_bytes)

    async def delete_file(self, name: str) -> None:
        if not self._loaded:
            return
        self._path(name).unlink(missing_ok=True)

    async def exec(
        self,
        argv: Sequence[str],
        *,
        progress: ProgressReporter | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> RunResult:
        await self.load()
        if self._busy:
            raise TranscodeError("engine is busy with another job")
        self._busy = True
        try:
            return await self._exec(list(argv), progress=progress, cancel_token=cancel_token)
        finally:
            self._busy = False

    async def _exec(
        self,
        argv: list[str],
        *,
        progress: ProgressReporter | None,
        cancel_token: CancellationToken | None,
    ) -> RunResult:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        args = [str(self.ffmpeg_bin), *_ENGINE_FLAGS, *argv]
        logger.info("ffmpeg exec (argv=%s)", " ".join(argv))
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(self.work_dir),
            )
        except FileNotFoundError as exc:
            raise TranscodeError(f"ffmpeg binary not found: {self.ffmpeg_bin}") from exc

        stderr_tail: deque[str] = deque(maxlen=_STDERR_TAIL_LINES)
        duration_s: float | None = None

        async def _read_stderr() -> None:
            nonlocal duration_s
            assert process.stderr is not None
            async for raw in process.stderr:
                line = raw.decode(errors="ignore").rstrip()
                if not line:
                    continue
                stderr_tail.append(line)
                if duration_s is None:
                    duration_s = parse_duration_s(line)

        async def _read_stdout() -> None:
            assert process.stdout is not None
            async for raw in process.stdout:
                kv = parse_progress_line(raw.decode(errors="ignore"))
                if kv is None or progress is None:
                    continue
                key, value = kv
                if key == "progress" and value == "end":
                    await progress.report(1.0, "converting")
                    continue
                position = out_time_s(key, value)
                if position is not None and duration_s:
                    await progress.report(min(1.0, position / duration_s), "converting")

        async def _communicate() -> int:
            await asyncio.gather(_read_stdout(), _read_stderr())
            return await process.wait()

        try:
            returncode = await guarded(_communicate(), cancel_token)
        except (asyncio.CancelledError, PipelineCancelledError):
            logger.info("ffmpeg job cancelled; killing pid=%s", process.pid)
            await self._kill(process)
            raise

        return RunResult(
            returncode=int(returncode),
            stdout=b"",
            stderr="\n".join(stderr_tail).encode("utf-8"),
        )

    @staticmethod
    async def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            process.kill()
        except ProcessLookupError:
            return
        await process.wait()

    async def close(self) -> None:
        if self._busy:
            raise TranscodeError("cannot close engine while a job is running")
        if self._owns_work_dir and self.work_dir is not None:
            shutil.rmtree(self.work_dir, ignore_errors=True)
        self.work_dir = None
        self.ffmpeg_bin = None
        self._owns_work_dir = False
        self._loaded = False
