"""FFmpeg binary resolution and output parsing helpers.

Prefer the configured binary, then `ffmpeg` on PATH, then the `imageio-ffmpeg`
bundled binary.
"""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"Duration:\s*(\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


def resolve_ffmpeg_bin(ffmpeg_bin: str = "ffmpeg") -> str:
    ffmpeg_bin = (ffmpeg_bin or "ffmpeg").strip()

    if Path(ffmpeg_bin).exists():
        return ffmpeg_bin

    found = shutil.which(ffmpeg_bin)
    if found:
        return found

    try:
        import imageio_ffmpeg

        return str(imageio_ffmpeg.get_ffmpeg_exe())
    except Exception as exc:
        logger.warning("failed to resolve bundled ffmpeg (%s); fallback to %r", exc, ffmpeg_bin)
        return ffmpeg_bin


def parse_duration_s(line: str) -> float | None:
    """Parse the input duration from an ffmpeg stderr banner line."""
    m = _DURATION_RE.search(line or "")
    if not m:
        return None
    hours, minutes, seconds = int(m.group(1)), int(m.group(2)), float(m.group(3))
    total = hours * 3600 + minutes * 60 + seconds
    return total if total > 0 else None


def parse_progress_line(line: str) -> tuple[str, str] | None:
    """Split one `-progress pipe:1` line into a key/value pair."""
    raw = (line or "").strip()
    if "=" not in raw:
        return None
    key, _, value = raw.partition("=")
    key = key.strip()
    if not key:
        return None
    return key, value.strip()


def out_time_s(key: str, value: str) -> float | None:
    """Return the encoded position in seconds for an `out_time*` progress key."""
    if key in {"out_time_us", "out_time_ms"}:
        # ffmpeg reports microseconds under both keys.
        try:
            us = int(value)
        except ValueError:
            return None
        return max(0.0, us / 1_000_000)
    if key == "out_time":
        m = re.match(r"^(\d+):(\d{2}):(\d{2}(?:\.\d+)?)$", value)
        if not m:
            return None
        return int(m.group(1)) * 3600 + int(m.group(2)) * 60 + float(m.group(3))
    return None
