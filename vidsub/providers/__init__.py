"""Provider abstractions for external collaborators."""

from vidsub.providers.registry import get_ingestion_client, get_transcoder_engine

__all__ = ["get_ingestion_client", "get_transcoder_engine"]
