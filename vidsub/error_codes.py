"""Canonical error codes surfaced to the presentation layer."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"

    TRANSCODE_FAILED = "TRANSCODE_FAILED"
    UPLOAD_FAILED = "UPLOAD_FAILED"
    TRANSCRIPTION_REQUEST_FAILED = "TRANSCRIPTION_REQUEST_FAILED"
    SUBTITLE_REQUEST_FAILED = "SUBTITLE_REQUEST_FAILED"

    CANCELLED = "CANCELLED"
