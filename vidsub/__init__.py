"""vidsub: local video-to-audio ingestion with remote subtitle generation."""

__version__ = "0.1.0"
