"""Workflow state store observed by the presentation layer."""

from typing import Any, Callable

import structlog

from lens_ocr.models.batch import SourceListing
from lens_ocr.models.state import WorkflowMode, WorkflowState

logger = structlog.get_logger(__name__)

Listener = Callable[[WorkflowState], None]


class WorkflowStore:
    """Owns the single WorkflowState and notifies subscribers on every change."""

    def __init__(self) -> None:
        self._state = WorkflowState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> WorkflowState:
        """Live state. Only the pipeline and the load/reset methods mutate it."""
        return self._state

    def snapshot(self) -> WorkflowState:
        """Copy of the current state that later updates do not affect."""
        return self._state.model_copy(
            update={"items": list(self._state.items), "log": list(self._state.log)}
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with a snapshot after every change.

        Returns:
            Function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def update(self, **changes: Any) -> None:
        for name, value in changes.items():
            setattr(self._state, name, value)
        self.publish()

    def append_log(self, line: str) -> None:
        self._state.log.append(line)
        self.publish()

    def _ensure_not_running(self) -> None:
        if self._state.is_running:
            raise RuntimeError("A run is in progress; reset before loading a new source")

    def _install(self, mode: WorkflowMode, listing: SourceListing) -> None:
        self._state = WorkflowState(
            mode=mode,
            items=list(listing.items),
            log=list(listing.notes),
            skipped_by_type=listing.skipped_by_type,
            skipped_by_prefix=listing.skipped_by_prefix,
            generation=self._state.generation,
        )
        logger.info(
            "workflow_loaded",
            mode=mode.value,
            item_count=len(listing.items),
            skipped_by_type=listing.skipped_by_type,
            skipped_by_prefix=listing.skipped_by_prefix,
        )
        self.publish()

    def load_single(self, listing: SourceListing) -> None:
        """Install a one-item listing for single-item mode."""
        self._ensure_not_running()
        if len(listing.items) != 1:
            raise ValueError(
                f"Single-item mode needs exactly one item, got {len(listing.items)}"
            )
        self._install(WorkflowMode.SINGLE, listing)

    def load_batch(self, listing: SourceListing) -> None:
        """Install a listing as the batch queue."""
        self._ensure_not_running()
        if listing.is_empty:
            raise ValueError("Cannot start a batch without items")
        self._install(WorkflowMode.BATCH, listing)

    def edit_text(self, text: str) -> None:
        """Overwrite the user-facing copy of the text."""
        self._state.edited_text = text
        self.publish()

    def reset(self) -> None:
        """Clear everything and invalidate any in-flight run."""
        generation = self._state.generation + 1
        self._state = WorkflowState(generation=generation)
        logger.info("workflow_reset", generation=generation)
        self.publish()
