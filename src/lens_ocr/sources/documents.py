"""Document helpers: media type detection, PDF rasterisation, camera frames."""

import io
import mimetypes
from typing import Optional

import pypdfium2 as pdfium
import structlog
from PIL import Image

from lens_ocr.errors import AdapterError

logger = structlog.get_logger(__name__)

GENERIC_MIME_TYPES = {"", "application/octet-stream", "binary/octet-stream"}


def guess_media_type(filename: str, declared: Optional[str] = None) -> Optional[str]:
    """
    Determine a file's MIME type.

    A declared type wins unless it is a generic binary type, in which case the
    type is guessed from the file extension.
    """
    if declared and declared.strip().lower() not in GENERIC_MIME_TYPES:
        return declared
    guessed, _ = mimetypes.guess_type(filename)
    return guessed


def split_pdf_pages(pdf_bytes: bytes, scale: float = 2.0) -> list[bytes]:
    """
    Render every page of a PDF to PNG bytes.

    Args:
        pdf_bytes: Raw PDF document.
        scale: Render scale (2.0 renders at 144 dpi).

    Returns:
        One PNG payload per page, in page order.

    Raises:
        AdapterError: If the PDF cannot be opened or rendered.
    """
    try:
        pdf = pdfium.PdfDocument(pdf_bytes)
    except Exception as e:
        raise AdapterError(f"Failed to open PDF: {str(e)}", original_error=e)

    try:
        pages: list[bytes] = []
        for page_num in range(len(pdf)):
            bitmap = pdf[page_num].render(scale=scale)
            buffer = io.BytesIO()
            bitmap.to_pil().save(buffer, format="PNG")
            pages.append(buffer.getvalue())
        logger.debug("pdf_split", page_count=len(pages))
        return pages
    except Exception as e:
        raise AdapterError(f"Failed to render PDF: {str(e)}", original_error=e)
    finally:
        pdf.close()


def normalize_capture(frame: bytes, quality: int = 92) -> bytes:
    """
    Re-encode a captured camera frame as an RGB JPEG.

    Raises:
        AdapterError: If the frame is not a decodable image.
    """
    try:
        image = Image.open(io.BytesIO(frame))
        if image.mode != "RGB":
            image = image.convert("RGB")
        buffer = io.BytesIO()
        image.save(buffer, format="JPEG", quality=quality)
        return buffer.getvalue()
    except Exception as e:
        raise AdapterError(f"Failed to decode camera capture: {str(e)}", original_error=e)
