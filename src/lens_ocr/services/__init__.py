"""Workflow services: state store, pipeline, export and intent facade."""

from lens_ocr.services.export import TextExporter
from lens_ocr.services.pipeline import BatchPipeline
from lens_ocr.services.store import WorkflowStore
from lens_ocr.services.workflow import WorkflowService

__all__ = ["BatchPipeline", "TextExporter", "WorkflowService", "WorkflowStore"]
