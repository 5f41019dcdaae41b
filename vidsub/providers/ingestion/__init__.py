"""Ingestion API client implementations."""

from vidsub.providers.ingestion.base import IngestionClient
from vidsub.providers.ingestion.client import HttpIngestionClient

__all__ = ["HttpIngestionClient", "IngestionClient"]
