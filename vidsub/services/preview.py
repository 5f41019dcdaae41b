"""Ephemeral preview handles for the currently selected source media."""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
import uuid
from pathlib import Path
from types import TracebackType

from vidsub.models.media import PreviewHandle, SourceMedia

logger = logging.getLogger(__name__)

DEFAULT_SLOT = "default"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class PreviewManager:
    """Issue and revoke `file://` handles to selected media, one per slot.

    Each handle is backed by a copy of the media in a private directory. The
    previous handle of a slot is released before a new one is issued, and a
    handle is released at most once.
    """

    def __init__(self, base_dir: str | None = None) -> None:
        self._requested_dir = base_dir
        self._base_dir: Path | None = None
        self._owns_dir = False
        self._live: dict[str, PreviewHandle] = {}

    def _dir(self) -> Path:
        if self._base_dir is None:
            if self._requested_dir:
                self._base_dir = Path(self._requested_dir)
                self._base_dir.mkdir(parents=True, exist_ok=True)
                self._owns_dir = False
            else:
                self._base_dir = Path(tempfile.mkdtemp(prefix="vidsub-preview-"))
                self._owns_dir = True
        return self._base_dir

    def live_handle(self, slot: str = DEFAULT_SLOT) -> PreviewHandle | None:
        return self._live.get(slot)

    @property
    def live_count(self) -> int:
        return len(self._live)

    def create_preview(self, media: SourceMedia, slot: str = DEFAULT_SLOT) -> PreviewHandle:
        previous = self._live.get(slot)
        if previous is not None:
            self.release_preview(previous)

        safe_name = _UNSAFE_CHARS.sub("_", media.name).strip("._") or "media"
        path = self._dir() / f"{uuid.uuid4().hex}-{safe_name}"
        path.write_bytes(media.data)
        handle = PreviewHandle(url=path.resolve().as_uri(), path=path, slot=slot)
        self._live[slot] = handle
        logger.debug("preview created (slot=%s, url=%s)", slot, handle.url)
        return handle

    def release_preview(self, handle: PreviewHandle) -> bool:
        """Release `handle`; returns False if it was already released or superseded."""
        if self._live.get(handle.slot) != handle:
            return False
        del self._live[handle.slot]
        handle.path.unlink(missing_ok=True)
        logger.debug("preview released (slot=%s, url=%s)", handle.slot, handle.url)
        return True

    def close(self) -> None:
        for handle in list(self._live.values()):
            self.release_preview(handle)
        if self._owns_dir and self._base_dir is not None:
            shutil.rmtree(self._base_dir, ignore_errors=True)
            self._base_dir = None

    def __enter__(self) -> "PreviewManager":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
