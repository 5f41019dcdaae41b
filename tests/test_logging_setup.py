from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from vidsub.utils.logging_setup import setup_logging


@pytest.fixture()
def vidsub_logger():
    logger = logging.getLogger("vidsub")
    saved = (list(logger.handlers), logger.level, logger.propagate, getattr(logger, "_vidsub_configured", False))
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers, logger.level, logger.propagate = saved[0], saved[1], saved[2]
    setattr(logger, "_vidsub_configured", saved[3])


def test_setup_logging_writes_rotating_file_once(settings, vidsub_logger) -> None:
    settings.logging.file = "vidsub.log"
    settings.logging.console = False

    logger = setup_logging(settings, force=True)
    assert logger is vidsub_logger
    assert logger.propagate is False
    assert [type(h) for h in logger.handlers] == [RotatingFileHandler]

    logging.getLogger("vidsub.pipeline.controller").info("pipeline transition (run=1, idle -> converting)")
    for handler in logger.handlers:
        handler.flush()
    text = (Path(settings.log_dir) / "vidsub.log").read_text(encoding="utf-8")
    assert "idle -> converting" in text

    settings.logging.file = None
    assert setup_logging(settings) is logger
    assert len(logger.handlers) == 1


def test_setup_logging_level_override(settings, vidsub_logger) -> None:
    settings.logging.level = "WARNING"
    logger = setup_logging(settings, level="debug", force=True)
    assert logger.level == logging.DEBUG

    logger = setup_logging(settings, force=True)
    assert logger.level == logging.WARNING
