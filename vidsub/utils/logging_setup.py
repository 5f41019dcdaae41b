"""Logging initialization helpers."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from vidsub.config import Settings

_CONFIGURED_ATTR = "_vidsub_configured"


def _resolve_level(name: str | None) -> int:
    level = getattr(logging, str(name or "INFO").upper(), None)
    return level if isinstance(level, int) else logging.INFO


def setup_logging(settings: Settings, *, level: str | None = None, force: bool = False) -> logging.Logger:
    """Configure the `vidsub` logger tree from Settings.

    Host application loggers are left alone. Repeated calls are no-ops
    unless `force` is set; `level` overrides `LOG_LEVEL`.
    """
    logger = logging.getLogger("vidsub")
    if getattr(logger, _CONFIGURED_ATTR, False) and not force:
        return logger

    resolved = _resolve_level(level or settings.logging.level)
    formatter = logging.Formatter(
        fmt=str(settings.logging.format),
        datefmt=str(settings.logging.datefmt),
    )

    handlers: list[logging.Handler] = []
    if settings.logging.console:
        stream = logging.StreamHandler()
        stream.setFormatter(formatter)
        handlers.append(stream)

    if settings.logging.file:
        file_path = Path(str(settings.logging.file))
        if not file_path.is_absolute():
            file_path = Path(settings.log_dir) / file_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                file_path,
                maxBytes=int(settings.logging.max_bytes),
                backupCount=int(settings.logging.backup_count),
                encoding="utf-8",
            )
        )

    for handler in logger.handlers:
        handler.close()
    for handler in handlers:
        handler.setLevel(resolved)
        if handler.formatter is None:
            handler.setFormatter(formatter)

    logger.setLevel(resolved)
    logger.handlers = handlers
    logger.propagate = False
    setattr(logger, _CONFIGURED_ATTR, True)
    return logger
