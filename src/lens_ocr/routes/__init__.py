"""HTTP routes."""

from lens_ocr.routes.workflow import router as workflow_router

__all__ = ["workflow_router"]
