"""Adapters for the remote OCR service and Google Drive."""

from lens_ocr.adapters.base import BaseOCRClient, OcrCorrection, OcrResult
from lens_ocr.adapters.drive_auth import (
    AccessToken,
    DriveAuthSession,
    StaticTokenProvider,
    TokenProvider,
)
from lens_ocr.adapters.drive_client import DriveClient, DriveFile
from lens_ocr.adapters.factory import OCRClientFactory
from lens_ocr.adapters.gemini_client import GeminiOCRClient
from lens_ocr.adapters.mock_client import MockOCRClient

__all__ = [
    "AccessToken",
    "BaseOCRClient",
    "DriveAuthSession",
    "DriveClient",
    "DriveFile",
    "GeminiOCRClient",
    "MockOCRClient",
    "OCRClientFactory",
    "OcrCorrection",
    "OcrResult",
    "StaticTokenProvider",
    "TokenProvider",
]
