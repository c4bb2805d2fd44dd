"""Pipeline coordinating download, extraction and cleanup."""

from .coordinator import DocumentPipeline, PipelineResult, PipelineState

__all__ = ["DocumentPipeline", "PipelineResult", "PipelineState"]
