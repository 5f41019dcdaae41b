"""Reusable services."""

from vidsub.services.preview import DEFAULT_SLOT, PreviewManager

__all__ = ["DEFAULT_SLOT", "PreviewManager"]
