"""Pipeline orchestration.

Providers import `vidsub.pipeline.cancellation` and `vidsub.pipeline.progress`
for type hints. Keep imports lazy to avoid circular-import issues between
`vidsub.pipeline` and `vidsub.providers`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vidsub.pipeline.cancellation import CancellationToken
    from vidsub.pipeline.controller import PipelineController
    from vidsub.pipeline.factory import create_ingestion_pipeline, create_preview_manager

__all__ = [
    "CancellationToken",
    "PipelineController",
    "create_ingestion_pipeline",
    "create_preview_manager",
]


def __getattr__(name: str) -> Any:
    if name == "CancellationToken":
        from vidsub.pipeline.cancellation import CancellationToken

        return CancellationToken
    if name == "PipelineController":
        from vidsub.pipeline.controller import PipelineController

        return PipelineController
    if name == "create_ingestion_pipeline":
        from vidsub.pipeline.factory import create_ingestion_pipeline

        return create_ingestion_pipeline
    if name == "create_preview_manager":
        from vidsub.pipeline.factory import create_preview_manager

        return create_preview_manager
    raise AttributeError(name)
