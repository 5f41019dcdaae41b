"""Async-friendly subprocess helpers for short, non-streaming commands.

`subprocess.run()` is executed via `asyncio.to_thread()` instead of
`asyncio.create_subprocess_exec()` since some runtime environments have flaky
child watchers that can cause `.wait()`/`.communicate()` to hang. Long-running
jobs that need incremental output go through the transcoder engine instead.
"""

from __future__ import annotations

import asyncio
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stderr_text(self, max_chars: int | None = None) -> str:
        text = self.stderr.decode(errors="ignore")
        if max_chars is not None and len(text) > max_chars:
            return text[-max_chars:]
        return text


async def run_subprocess(
    args: Sequence[str],
    *,
    cwd: str | Path | None = None,
    timeout_s: float | None = None,
) -> RunResult:
    """Run `args` to completion and capture both output streams.

    Raises FileNotFoundError when the executable is missing and
    subprocess.TimeoutExpired when `timeout_s` elapses.
    """

    def _run() -> subprocess.CompletedProcess[bytes]:
        return subprocess.run(
            [str(a) for a in args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=str(cwd) if cwd is not None else None,
            check=False,
            timeout=timeout_s,
        )

    cp = await asyncio.to_thread(_run)
    return RunResult(
        returncode=int(cp.returncode),
        stdout=cp.stdout or b"",
        stderr=cp.stderr or b"",
    )
