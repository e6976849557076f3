"""Sequential OCR pipeline that drives the workflow queue."""

import asyncio
from typing import Optional

import structlog

from lens_ocr.adapters.base import BaseOCRClient
from lens_ocr.errors import LensOCRError
from lens_ocr.models.batch import BatchItem
from lens_ocr.models.state import PipelineStatus, WorkflowMode, WorkflowState
from lens_ocr.services.export import TextExporter
from lens_ocr.services.store import WorkflowStore

logger = structlog.get_logger(__name__)

SEPARATOR_TEMPLATE = "\n\n--- [{name}] ---\n\n"
BATCH_INTERRUPTED_MESSAGE = "Batch interrupted. Start again to resume from {name}."
SINGLE_FAILED_MESSAGE = "Analysis failed."


def separator_for(name: str) -> str:
    """Header placed before every item's text except the first."""
    return SEPARATOR_TEMPLATE.format(name=name)


class BatchPipeline:
    """
    Processes the store's items one at a time through the OCR client.

    The loop suspends only while resolving an item's bytes and while waiting
    for the OCR call. Progress is committed after every item, so a failure
    leaves the cursor on the failing item and the next start() resumes there.
    A reset during a run bumps the store generation; results that arrive for
    an older generation are dropped.
    """

    def __init__(
        self,
        store: WorkflowStore,
        ocr_client: BaseOCRClient,
        exporter: Optional[TextExporter] = None,
        auto_export: bool = True,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            store: Workflow state store to read items from and write progress to.
            ocr_client: OCR client called once per item.
            exporter: Exporter used for the automatic export on completion.
            auto_export: Whether to export when a batch completes.
        """
        self.store = store
        self.ocr_client = ocr_client
        self.exporter = exporter
        self.auto_export = auto_export

        logger.info(
            "batch_pipeline_initialized",
            client=type(ocr_client).__name__,
            auto_export=auto_export and exporter is not None,
        )

    def _is_stale(self, generation: int) -> bool:
        return self.store.state.generation != generation

    async def start(self) -> WorkflowState:
        """
        Start or resume processing.

        A no-op while a run is active, when nothing is loaded, or when the
        batch already completed.

        Returns:
            Snapshot of the state after the run stops.
        """
        state = self.store.state

        if state.mode == WorkflowMode.SINGLE:
            return await self.run_single()

        if state.is_running:
            logger.info("start_ignored_run_active", cursor=state.cursor)
            return self.store.snapshot()
        if not state.items or state.is_complete:
            logger.info("start_ignored_nothing_to_do", total=len(state.items))
            return self.store.snapshot()

        await self._run_batch(state.generation)
        return self.store.snapshot()

    async def _run_batch(self, generation: int) -> None:
        state = self.store.state
        items = list(state.items)
        total = len(items)

        self.store.update(
            is_running=True,
            status=PipelineStatus.RUNNING,
            error=None,
            error_kind=None,
        )

        logger.info("batch_started", total=total, resume_from=state.cursor)

        index = state.cursor
        while index < total:
            item = items[index]
            self.store.update(cursor=index)

            logger.info("processing_batch_item", index=index, total=total, item_name=item.name)

            try:
                data = await item.resolve()
                if self._is_stale(generation):
                    logger.info("discarding_stale_item", item_name=item.name)
                    return

                result = await self.ocr_client.extract(data, item.media_type)
                if self._is_stale(generation):
                    logger.info("discarding_stale_item", item_name=item.name)
                    return

            except LensOCRError as e:
                self._fail_batch(generation, index, item, e)
                return

            except Exception as e:
                logger.error(
                    "unexpected_error_processing_item",
                    item_name=item.name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                self._fail_batch(generation, index, item, e)
                return

            self._commit(index, total, item, result.corrected_text)
            index += 1

        await self._complete_batch(generation, total)

    def _commit(self, index: int, total: int, item: BatchItem, text: str) -> None:
        header = "" if index == 0 else separator_for(item.name)
        accumulated = self.store.state.accumulated_text + header + text

        self.store.state.log.append(f"Processed {item.name} ({index + 1}/{total})")
        self.store.update(
            accumulated_text=accumulated,
            edited_text=accumulated,
            cursor=index + 1,
        )

        logger.info("batch_item_completed", index=index, item_name=item.name)

    def _fail_batch(
        self, generation: int, index: int, item: BatchItem, error: Exception
    ) -> None:
        if self._is_stale(generation):
            logger.info("discarding_stale_failure", item_name=item.name, error=str(error))
            return

        logger.error(
            "batch_interrupted",
            index=index,
            item_name=item.name,
            error=str(error),
            error_type=type(error).__name__,
        )

        self.store.update(
            cursor=index,
            is_running=False,
            status=PipelineStatus.FAILED,
            error=BATCH_INTERRUPTED_MESSAGE.format(name=item.name),
            error_kind=type(error).__name__,
        )

    async def _complete_batch(self, generation: int, total: int) -> None:
        self.store.state.log.append(f"Batch complete: {total} documents processed")
        self.store.update(is_running=False, status=PipelineStatus.COMPLETED)

        logger.info("batch_completed", total=total)

        if not (self.auto_export and self.exporter):
            return

        text = self.store.state.edited_text
        try:
            path = await asyncio.to_thread(self.exporter.export, text)
        except OSError as e:
            logger.error("auto_export_failed", error=str(e))
            if not self._is_stale(generation):
                self.store.append_log("Automatic export failed")
            return

        if not self._is_stale(generation):
            self.store.state.log.append(f"Exported to {path.name}")
            self.store.update(export_path=str(path))

    async def run_single(self) -> WorkflowState:
        """
        Process the one loaded item and store the whole result.

        Returns:
            Snapshot of the state after the call.
        """
        state = self.store.state

        if state.is_running or not state.items or state.result is not None:
            logger.info("single_run_ignored", is_running=state.is_running)
            return self.store.snapshot()

        generation = state.generation
        item = state.items[0]

        self.store.update(
            is_running=True,
            status=PipelineStatus.RUNNING,
            error=None,
            error_kind=None,
        )

        logger.info("processing_single_item", item_name=item.name, media_type=item.media_type)

        try:
            data = await item.resolve()
            result = await self.ocr_client.extract(data, item.media_type)

        except Exception as e:
            if self._is_stale(generation):
                return self.store.snapshot()

            logger.error(
                "single_item_failed",
                item_name=item.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            self.store.update(
                is_running=False,
                status=PipelineStatus.FAILED,
                error=SINGLE_FAILED_MESSAGE,
                error_kind=type(e).__name__,
            )
            return self.store.snapshot()

        if self._is_stale(generation):
            logger.info("discarding_stale_item", item_name=item.name)
            return self.store.snapshot()

        self.store.update(
            result=result,
            edited_text=result.corrected_text,
            is_running=False,
            status=PipelineStatus.COMPLETED,
        )

        logger.info(
            "single_item_completed",
            item_name=item.name,
            corrections=len(result.corrections),
            language=result.language,
        )
        return self.store.snapshot()
