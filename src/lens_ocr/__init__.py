"""lens-ocr: document OCR workflow backed by a remote vision-language model."""

__version__ = "0.1.0"
