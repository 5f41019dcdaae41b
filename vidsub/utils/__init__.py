"""Utility helpers."""

from vidsub.utils.ffmpeg import parse_duration_s, parse_progress_line, resolve_ffmpeg_bin
from vidsub.utils.subprocess import RunResult, run_subprocess

__all__ = [
    "parse_duration_s",
    "parse_progress_line",
    "resolve_ffmpeg_bin",
    "RunResult",
    "run_subprocess",
]
