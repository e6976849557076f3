"""Base OCR client interface and result models."""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field

from lens_ocr.errors import MalformedResponseError, OCRError, ServiceError


class OcrCorrection(BaseModel):
    """One correction applied while cleaning the raw extraction."""

    original: str
    fixed: str
    reason: str


class OcrResult(BaseModel):
    """Structured result of one OCR call."""

    raw_text: str = Field(
        ..., validation_alias=AliasChoices("raw_text", "rawText")
    )
    """Unmodified extraction."""

    corrected_text: str = Field(
        ..., validation_alias=AliasChoices("corrected_text", "correctedText")
    )
    """Cleaned extraction with paragraph breaks and indentation preserved."""

    corrections: list[OcrCorrection] = Field(...)
    """Corrections applied to the raw text, in order."""

    language: str
    """Detected primary language."""

    confidence: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    """Model-reported confidence score."""


class BaseOCRClient(ABC):
    """Abstract base class for remote OCR clients."""

    supports_pdf: bool = True
    """Whether whole PDF documents can be sent in a single call."""

    def __init__(self, config: dict[str, Any]) -> None:
        """
        Initialize the OCR client.

        Args:
            config: Configuration dictionary for the client.
        """
        self.config = config

    @abstractmethod
    async def extract(self, data: bytes, mime_type: str) -> OcrResult:
        """
        Extract text from one document.

        Args:
            data: Raw document bytes.
            mime_type: MIME type of the document.

        Returns:
            OcrResult for the document.

        Raises:
            ServiceError: If the remote call fails.
            MalformedResponseError: If the response cannot be parsed.
        """

    async def cleanup(self) -> None:
        """
        Clean up resources used by the client.

        Override this method if your client holds connections.
        """

    async def __aenter__(self) -> "BaseOCRClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.cleanup()


__all__ = [
    "BaseOCRClient",
    "MalformedResponseError",
    "OCRError",
    "OcrCorrection",
    "OcrResult",
    "ServiceError",
]
