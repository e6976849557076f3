"""Exception hierarchy for the OCR workflow."""

from typing import Optional


class LensOCRError(Exception):
    """Base exception for all workflow errors."""

    def __init__(
        self, message: str, original_error: Optional[Exception] = None
    ) -> None:
        """
        Initialize the error.

        Args:
            message: Error message.
            original_error: Original exception that caused this error.
        """
        super().__init__(message)
        self.original_error = original_error


class OCRError(LensOCRError):
    """Base exception for remote OCR failures."""


class ServiceError(OCRError):
    """The remote OCR call failed on the transport or API side."""


class MalformedResponseError(OCRError):
    """The remote OCR call succeeded but returned no usable structured payload."""


class SourceError(LensOCRError):
    """Base exception for document acquisition failures."""


class AdapterError(SourceError):
    """File or folder selection failed, or access was denied."""


class AuthError(SourceError):
    """Storage-provider credential acquisition failed."""


class ListingError(SourceError):
    """Storage-provider folder listing failed."""


class FetchError(SourceError):
    """Resolving a batch item to bytes failed."""
