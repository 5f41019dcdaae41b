"""Local transcoding provider implementations."""

from vidsub.providers.transcoder.adapter import TranscoderAdapter
from vidsub.providers.transcoder.base import TranscoderEngine
from vidsub.providers.transcoder.engine import FFmpegEngine

__all__ = ["FFmpegEngine", "TranscoderAdapter", "TranscoderEngine"]
