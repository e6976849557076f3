"""Local file, folder, upload and camera sources."""

import asyncio
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, NamedTuple, Optional, Union

import structlog

from lens_ocr.errors import AdapterError, FetchError
from lens_ocr.models.batch import (
    PDF_MIME_TYPE,
    BatchItem,
    SourceListing,
    is_supported_media_type,
    normalize_media_type,
)
from lens_ocr.sources.base import BatchSource, expand_pages
from lens_ocr.sources.documents import guess_media_type, normalize_capture

logger = structlog.get_logger(__name__)


class Upload(NamedTuple):
    """A file received from a browser picker."""

    filename: str
    content_type: Optional[str]
    data: bytes


class LocalFileResolver:
    """Reads local files only when the pipeline reaches them."""

    async def fetch_bytes(self, ref: str) -> bytes:
        try:
            return await asyncio.to_thread(Path(ref).read_bytes)
        except OSError as e:
            raise FetchError(f"Failed to read {ref}: {str(e)}", original_error=e)


class LocalFileSource(BatchSource):
    """A single local file, processed in single-item mode."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)

    async def collect(self) -> SourceListing:
        if not self.path.is_file():
            raise AdapterError(f"File not found: {self.path}")

        media_type = guess_media_type(self.path.name)
        if not is_supported_media_type(media_type):
            raise AdapterError(
                f"Unsupported file type for OCR: {self.path.name} ({media_type})"
            )

        try:
            data = await asyncio.to_thread(self.path.read_bytes)
        except OSError as e:
            raise AdapterError(f"Cannot read {self.path}: {str(e)}", original_error=e)

        logger.info("local_file_selected", name=self.path.name, size_bytes=len(data))

        return SourceListing(
            items=[BatchItem.inline("0", self.path.name, data, media_type)],
            selected_count=1,
        )


class LocalFolderSource(BatchSource):
    """Every supported file below a local directory, ordered by relative path."""

    def __init__(
        self,
        path: Union[str, Path],
        recursive: bool = True,
        split_pdfs: bool = False,
        render_scale: float = 2.0,
    ) -> None:
        """
        Initialize the folder source.

        Args:
            path: Directory to scan.
            recursive: Include files in subdirectories.
            split_pdfs: Rasterise PDFs into one item per page.
            render_scale: Render scale for PDF pages.
        """
        self.path = Path(path)
        self.recursive = recursive
        self.split_pdfs = split_pdfs
        self.render_scale = render_scale
        self._resolver = LocalFileResolver()

    async def collect(self) -> SourceListing:
        if not self.path.is_dir():
            raise AdapterError(f"Folder not found: {self.path}")

        try:
            pattern = "**/*" if self.recursive else "*"
            files = sorted(
                (p for p in self.path.glob(pattern) if p.is_file()),
                key=lambda p: p.relative_to(self.path).as_posix(),
            )
        except OSError as e:
            raise AdapterError(f"Cannot scan {self.path}: {str(e)}", original_error=e)

        items: list[BatchItem] = []
        skipped_by_type = 0

        for index, file_path in enumerate(files):
            relative = file_path.relative_to(self.path).as_posix()
            media_type = guess_media_type(file_path.name)
            if not is_supported_media_type(media_type):
                skipped_by_type += 1
                continue

            media_type = normalize_media_type(media_type)
            item_id = f"{index}-{relative}"

            if self.split_pdfs and media_type == PDF_MIME_TYPE:
                try:
                    data = await asyncio.to_thread(file_path.read_bytes)
                except OSError as e:
                    raise AdapterError(
                        f"Cannot read {relative}: {str(e)}", original_error=e
                    )
                items.extend(
                    expand_pages(item_id, relative, data, media_type, self.render_scale)
                )
            else:
                items.append(
                    BatchItem.deferred(
                        item_id, relative, str(file_path), self._resolver, media_type
                    )
                )

        logger.info(
            "local_folder_scanned",
            folder=str(self.path),
            selected=len(files),
            queued=len(items),
            skipped_by_type=skipped_by_type,
        )

        return SourceListing(
            items=items,
            selected_count=len(files),
            skipped_by_type=skipped_by_type,
        )


class UploadSource(BatchSource):
    """Files handed over by the browser file or folder picker."""

    def __init__(
        self,
        uploads: Iterable[Upload],
        split_pdfs: bool = False,
        render_scale: float = 2.0,
    ) -> None:
        self.uploads = list(uploads)
        self.split_pdfs = split_pdfs
        self.render_scale = render_scale

    async def collect(self) -> SourceListing:
        items: list[BatchItem] = []
        skipped_by_type = 0

        for index, upload in enumerate(self.uploads):
            media_type = guess_media_type(upload.filename, upload.content_type)
            if not is_supported_media_type(media_type):
                skipped_by_type += 1
                continue

            media_type = normalize_media_type(media_type)
            item_id = f"{index}-{upload.filename}"

            if self.split_pdfs:
                items.extend(
                    expand_pages(
                        item_id, upload.filename, upload.data, media_type, self.render_scale
                    )
                )
            else:
                items.append(
                    BatchItem.inline(item_id, upload.filename, upload.data, media_type)
                )

        logger.info(
            "uploads_received",
            selected=len(self.uploads),
            queued=len(items),
            skipped_by_type=skipped_by_type,
        )

        return SourceListing(
            items=items,
            selected_count=len(self.uploads),
            skipped_by_type=skipped_by_type,
        )


class CameraCaptureSource(BatchSource):
    """A single camera frame, processed in single-item mode."""

    def __init__(self, frame: bytes, captured_at: Optional[datetime] = None) -> None:
        self.frame = frame
        self.captured_at = captured_at or datetime.now(UTC)

    async def collect(self) -> SourceListing:
        if not self.frame:
            raise AdapterError("Camera capture is empty")

        data = await asyncio.to_thread(normalize_capture, self.frame)
        name = f"camera-{self.captured_at.strftime('%Y%m%d-%H%M%S')}.jpg"

        logger.info("camera_frame_captured", name=name, size_bytes=len(data))

        return SourceListing(
            items=[BatchItem.inline("camera", name, data, "image/jpeg")],
            selected_count=1,
        )
