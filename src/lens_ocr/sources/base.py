"""Base interface for document sources."""

from abc import ABC, abstractmethod

from lens_ocr.models.batch import PDF_MIME_TYPE, BatchItem, SourceListing
from lens_ocr.sources.documents import split_pdf_pages


class BatchSource(ABC):
    """Acquisition path that produces the items of one workflow."""

    @abstractmethod
    async def collect(self) -> SourceListing:
        """
        Produce the ordered items for a workflow.

        Returns:
            SourceListing with items and filtering counts.

        Raises:
            SourceError: If acquisition fails. No partial listing is returned.
        """


def expand_pages(
    item_id: str, name: str, data: bytes, media_type: str, scale: float
) -> list[BatchItem]:
    """Turn a PDF into one PNG item per page; other documents pass through."""
    if media_type != PDF_MIME_TYPE:
        return [BatchItem.inline(item_id, name, data, media_type)]

    pages = split_pdf_pages(data, scale=scale)
    if len(pages) == 1:
        return [BatchItem.inline(item_id, name, pages[0], "image/png")]

    return [
        BatchItem.inline(f"{item_id}#p{number}", f"{name} (page {number})", page, "image/png")
        for number, page in enumerate(pages, start=1)
    ]
