"""vidsub exception hierarchy."""

from __future__ import annotations

from vidsub.error_codes import ErrorCode


class VidsubError(Exception):
    """Base error for vidsub."""


class ConfigurationError(VidsubError):
    """Raised when configuration or inputs are invalid."""


class InvalidStateError(VidsubError):
    """Raised when a controller operation is not allowed in the current state."""

    def __init__(self, operation: str, state: str) -> None:
        super().__init__(f"cannot {operation} while pipeline is {state}")
        self.operation = operation
        self.state = state


class PipelineCancelledError(VidsubError):
    """Raised inside a run once its cancellation token has fired."""

    error_code = ErrorCode.CANCELLED


class ProviderError(VidsubError):
    """Raised when an external collaborator call fails."""

    default_error_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(
        self,
        provider: str,
        message: str,
        *,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.error_code = error_code if error_code is not None else self.default_error_code


class TranscodeError(ProviderError):
    """The transcoding engine failed or produced unusable output."""

    default_error_code = ErrorCode.TRANSCODE_FAILED

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stderr: str = "",
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__("ffmpeg", message, error_code=error_code)
        self.returncode = returncode
        self.stderr = stderr


class _HTTPStageError(ProviderError):
    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error_code: ErrorCode | str | None = None,
    ) -> None:
        super().__init__("ingestion_api", message, error_code=error_code)
        self.status_code = status_code


class UploadError(_HTTPStageError):
    """The audio upload was rejected or returned an unusable identifier."""

    default_error_code = ErrorCode.UPLOAD_FAILED


class TranscriptionRequestError(_HTTPStageError):
    """The remote service rejected the transcription request."""

    default_error_code = ErrorCode.TRANSCRIPTION_REQUEST_FAILED


class SubtitleRequestError(_HTTPStageError):
    """The remote service rejected the subtitle request."""

    default_error_code = ErrorCode.SUBTITLE_REQUEST_FAILED
