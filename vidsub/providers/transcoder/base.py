"""Transcoding engine abstractions."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from vidsub.pipeline.cancellation import CancellationToken
from vidsub.pipeline.progress import ProgressReporter
from vidsub.utils.subprocess import RunResult


class TranscoderEngine(ABC):
    """A single-job transcoding engine addressed through named files.

    Files live in an engine-private namespace: callers write inputs and read
    outputs by logical name only.
    """

    @abstractmethod
    async def load(self) -> None:
        """Initialise the engine; calling it again is a no-op."""

    @abstractmethod
    async def write_file(self, name: str, data: bytes) -> None:
        raise NotImplementedError

    @abstractmethod
    async def exec(
        self,
        argv: Sequence[str],
        *,
        progress: ProgressReporter | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> RunResult:
        """Run one job and return its exit status and diagnostics."""
        raise NotImplementedError

    @abstractmethod
    async def read_file(self, name: str) -> bytes:
        raise NotImplementedError

    @property
    def busy(self) -> bool:
        """True while a job is executing."""
        return False

    async def delete_file(self, name: str) -> None:  # pragma: no cover
        return None

    async def close(self) -> None:  # pragma: no cover
        return None
