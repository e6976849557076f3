"""Data models for the OCR workflow."""

from lens_ocr.models.batch import (
    BatchItem,
    DeferredSource,
    InlineSource,
    SourceListing,
    is_supported_media_type,
)
from lens_ocr.models.state import PipelineStatus, WorkflowMode, WorkflowState

__all__ = [
    "BatchItem",
    "DeferredSource",
    "InlineSource",
    "PipelineStatus",
    "SourceListing",
    "WorkflowMode",
    "WorkflowState",
    "is_supported_media_type",
]
