"""Workflow state models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from lens_ocr.adapters.base import OcrResult
from lens_ocr.models.batch import BatchItem


class WorkflowMode(str, Enum):
    """Which kind of source is loaded."""

    IDLE = "idle"
    SINGLE = "single"
    BATCH = "batch"


class PipelineStatus(str, Enum):
    """Processing status enumeration."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class WorkflowState(BaseModel):
    """The single mutable state container observed by the presentation layer."""

    mode: WorkflowMode = Field(default=WorkflowMode.IDLE)
    status: PipelineStatus = Field(default=PipelineStatus.IDLE)
    items: list[BatchItem] = Field(default_factory=list)
    cursor: int = Field(0, ge=0, description="Index of the next unprocessed item")
    accumulated_text: str = Field("", description="Pipeline-owned consolidated text")
    edited_text: str = Field("", description="User-facing editable copy")
    log: list[str] = Field(default_factory=list)
    is_running: bool = False
    error: Optional[str] = None
    error_kind: Optional[str] = None
    result: Optional[OcrResult] = Field(None, description="Single-item result")
    skipped_by_type: int = 0
    skipped_by_prefix: int = 0
    export_path: Optional[str] = None
    generation: int = Field(0, description="Bumped on reset to invalidate runs")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> int:
        return len(self.items)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def progress(self) -> float:
        if not self.items:
            return 0.0
        return self.cursor / len(self.items)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def character_count(self) -> int:
        return len(self.edited_text)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def paragraph_count(self) -> int:
        return len([line for line in self.edited_text.split("\n") if line.strip()])

    @property
    def is_complete(self) -> bool:
        return bool(self.items) and self.cursor >= len(self.items)

    @property
    def has_result(self) -> bool:
        return self.result is not None or (
            self.mode == WorkflowMode.BATCH and bool(self.edited_text)
        )
