"""Document sources that produce workflow items."""

from lens_ocr.sources.base import BatchSource
from lens_ocr.sources.drive import DriveFolderSource, FolderPicker, StaticFolderPicker
from lens_ocr.sources.local import (
    CameraCaptureSource,
    LocalFileResolver,
    LocalFileSource,
    LocalFolderSource,
    Upload,
    UploadSource,
)

__all__ = [
    "BatchSource",
    "CameraCaptureSource",
    "DriveFolderSource",
    "FolderPicker",
    "LocalFileResolver",
    "LocalFileSource",
    "LocalFolderSource",
    "StaticFolderPicker",
    "Upload",
    "UploadSource",
]
