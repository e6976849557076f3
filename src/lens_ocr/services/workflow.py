"""Workflow service that turns user intents into source, pipeline and export calls."""

import asyncio
from pathlib import Path
from typing import Any, Iterable, Optional, Union

import httpx
import structlog

from lens_ocr.adapters.base import BaseOCRClient
from lens_ocr.adapters.drive_auth import DriveAuthSession, StaticTokenProvider
from lens_ocr.adapters.drive_client import DriveClient
from lens_ocr.config import Settings
from lens_ocr.errors import AdapterError
from lens_ocr.models.state import WorkflowState
from lens_ocr.services.export import TextExporter
from lens_ocr.services.pipeline import BatchPipeline
from lens_ocr.services.store import WorkflowStore
from lens_ocr.sources.base import BatchSource
from lens_ocr.sources.drive import DriveFolderSource, StaticFolderPicker
from lens_ocr.sources.local import (
    CameraCaptureSource,
    LocalFileSource,
    LocalFolderSource,
    Upload,
    UploadSource,
)

logger = structlog.get_logger(__name__)


class WorkflowService:
    """Facade over the store, pipeline, exporter and sources."""

    def __init__(
        self,
        settings: Settings,
        ocr_client: BaseOCRClient,
        store: Optional[WorkflowStore] = None,
        exporter: Optional[TextExporter] = None,
        drive_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the workflow service.

        Args:
            settings: Application settings.
            ocr_client: OCR client used by the pipeline.
            store: State store (a fresh one by default).
            exporter: Text exporter (built from settings by default).
            drive_transport: Optional httpx transport for Drive calls.
        """
        self.settings = settings
        self.ocr_client = ocr_client
        self.store = store or WorkflowStore()
        self.exporter = exporter or TextExporter(
            settings.export_dir, settings.export_filename_prefix
        )
        self.pipeline = BatchPipeline(
            self.store,
            ocr_client,
            exporter=self.exporter,
            auto_export=settings.auto_export,
        )
        self._drive_transport = drive_transport
        self._drive_client: Optional[DriveClient] = None

        logger.info(
            "workflow_service_initialized",
            client=type(ocr_client).__name__,
            pdf_policy=settings.pdf_policy,
        )

    @property
    def split_pdfs(self) -> bool:
        return self.settings.pdf_policy == "per_page" or not self.ocr_client.supports_pdf

    def snapshot(self) -> WorkflowState:
        return self.store.snapshot()

    async def _load_single(self, source: BatchSource) -> WorkflowState:
        if self.store.state.is_running:
            raise RuntimeError("A run is in progress; reset before loading a new source")
        listing = await source.collect()
        self.store.load_single(listing)
        return self.store.snapshot()

    async def _load_batch(self, source: BatchSource) -> WorkflowState:
        if self.store.state.is_running:
            raise RuntimeError("A run is in progress; reset before loading a new source")

        listing = await source.collect()

        if listing.nothing_selected:
            raise AdapterError("No files were selected")
        if listing.is_empty:
            raise AdapterError(
                f"None of the {listing.selected_count} selected files is an image or PDF"
            )

        self.store.load_batch(listing)
        return self.store.snapshot()

    async def select_file(self, path: Union[str, Path]) -> WorkflowState:
        """Load one local file for single-item mode."""
        return await self._load_single(LocalFileSource(path))

    async def select_upload(self, upload: Upload) -> WorkflowState:
        """Load one uploaded file for single-item mode."""
        if self.store.state.is_running:
            raise RuntimeError("A run is in progress; reset before loading a new source")
        listing = await UploadSource([upload]).collect()
        if listing.is_empty:
            raise AdapterError(f"Unsupported file type for OCR: {upload.filename}")
        self.store.load_single(listing)
        return self.store.snapshot()

    async def select_capture(self, frame: bytes) -> WorkflowState:
        """Load a camera frame for single-item mode."""
        return await self._load_single(CameraCaptureSource(frame))

    async def select_folder(self, path: Union[str, Path]) -> WorkflowState:
        """Load every supported file below a local folder as a batch."""
        return await self._load_batch(
            LocalFolderSource(
                path,
                split_pdfs=self.split_pdfs,
                render_scale=self.settings.pdf_render_scale,
            )
        )

    async def select_uploads(self, uploads: Iterable[Upload]) -> WorkflowState:
        """Load files from the browser folder picker as a batch."""
        return await self._load_batch(
            UploadSource(
                uploads,
                split_pdfs=self.split_pdfs,
                render_scale=self.settings.pdf_render_scale,
            )
        )

    async def select_drive_folder(
        self,
        folder_id: str,
        access_token: str,
        expires_in: Optional[int] = None,
    ) -> WorkflowState:
        """
        Load the supported children of a Drive folder as a batch.

        The token and folder come from the browser-side OAuth flow and picker.
        """
        session = DriveAuthSession(
            StaticTokenProvider(access_token, expires_in=expires_in),
            skew_seconds=self.settings.drive_token_skew,
        )
        client = DriveClient(
            session,
            base_url=self.settings.drive_api_url,
            api_key=self.settings.drive_api_key,
            timeout=self.settings.drive_timeout,
            page_size=self.settings.drive_page_size,
            max_pages=self.settings.drive_max_pages,
            transport=self._drive_transport,
        )
        source = DriveFolderSource(
            session,
            StaticFolderPicker(folder_id),
            client,
            output_prefix=self.settings.output_prefix,
        )

        try:
            state = await self._load_batch(source)
        except Exception:
            await client.close()
            raise

        if self._drive_client is not None:
            await self._drive_client.close()
        self._drive_client = client
        return state

    async def start(self) -> WorkflowState:
        """Start or resume processing of whatever is loaded."""
        return await self.pipeline.start()

    def edit_text(self, text: str) -> WorkflowState:
        self.store.edit_text(text)
        return self.store.snapshot()

    def reset(self) -> WorkflowState:
        self.store.reset()
        return self.store.snapshot()

    def export_filename(self) -> str:
        return self.exporter.filename()

    async def export(self) -> Path:
        """
        Write the edited text to the export directory.

        The file is written on a worker thread.

        Raises:
            ValueError: If there is no text to export.
        """
        text = self.store.state.edited_text
        if not text:
            raise ValueError("There is no text to export")

        path = await asyncio.to_thread(self.exporter.export, text)
        self.store.update(export_path=str(path))
        return path

    async def cleanup(self) -> None:
        """Clean up service resources."""
        logger.info("cleaning_up_workflow_service")
        if self._drive_client is not None:
            await self._drive_client.close()
            self._drive_client = None
        await self.ocr_client.cleanup()

    async def __aenter__(self) -> "WorkflowService":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.cleanup()

