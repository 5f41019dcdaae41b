"""Configuration management using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vidsub.exceptions import ConfigurationError

_ENV_FILES = (".env", "../.env")


class ApiConfig(BaseSettings):
    """Remote ingestion API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "http"
    base_url: str = "http://localhost:3333"
    # None disables the client-side timeout.
    timeout: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _validate_base_url(self) -> "ApiConfig":
        url = str(self.base_url or "").strip()
        if not (url.startswith("http://") or url.startswith("https://")):
            raise ConfigurationError(f"API_BASE_URL must be an http(s) url (got {self.base_url!r})")
        self.base_url = url.rstrip("/")
        return self


class TranscoderConfig(BaseSettings):
    """Local transcoding engine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSCODER_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "ffmpeg"
    ffmpeg_bin: str = "ffmpeg"
    work_dir: str | None = None


class PipelineConfig(BaseSettings):
    """Pipeline behaviour switches."""

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    transcription_enabled: bool = False
    progress_min_step: float = Field(default=0.05, ge=0, le=1)
    progress_min_interval_s: float = Field(default=1.0, ge=0)


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES, env_file_encoding="utf-8", extra="ignore"
    )

    data_dir: str = "./data"
    log_dir: str = "./logs"

    api: ApiConfig = ApiConfig()
    transcoder: TranscoderConfig = TranscoderConfig()
    pipeline: PipelineConfig = PipelineConfig()
    logging: LoggingSettings = LoggingSettings()

    def model_post_init(self, __context: Any) -> None:
        self.data_dir = str(Path(self.data_dir).expanduser().resolve())
        self.log_dir = str(Path(self.log_dir).expanduser().resolve())

    @property
    def transcoder_work_dir(self) -> str:
        """Directory the transcoding engine uses as its private file system."""
        if self.transcoder.work_dir:
            return str(Path(self.transcoder.work_dir).expanduser().resolve())
        return str(Path(self.data_dir) / "transcoder")

    @property
    def preview_dir(self) -> str:
        return str(Path(self.data_dir) / "previews")
