"""Pytest configuration and shared fixtures."""

import io
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from lens_ocr.adapters import MockOCRClient
from lens_ocr.config import Settings
from lens_ocr.models.batch import BatchItem, SourceListing


def make_png(color: str = "white", size: tuple[int, int] = (100, 80)) -> bytes:
    """Encode a blank PNG."""
    buffer = io.BytesIO()
    Image.new("RGB", size, color=color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_pdf(page_count: int) -> bytes:
    """Build a PDF with one blank page per requested page."""
    pages = [Image.new("RGB", (200, 300), color="white") for _ in range(page_count)]
    buffer = io.BytesIO()
    pages[0].save(buffer, format="PDF", save_all=True, append_images=pages[1:])
    return buffer.getvalue()


def text_item(name: str, text: str) -> BatchItem:
    """Image item whose bytes the mock client echoes back as text."""
    return BatchItem.inline(name, name, text.encode("utf-8"), "image/png")


def text_listing(*pairs: tuple[str, str]) -> SourceListing:
    items = [text_item(name, text) for name, text in pairs]
    return SourceListing(items=items, selected_count=len(items))


@pytest.fixture
def sample_png_bytes() -> bytes:
    """Create sample PNG bytes for testing."""
    return make_png()


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Create a three-page PDF for testing."""
    return make_pdf(3)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set up test environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("OCR_ENGINE", "mock")


@pytest.fixture
def mock_ocr_config() -> dict[str, Any]:
    """Provide mock OCR client configuration."""
    return {
        "delay_ms": 0,
        "fail_rate": 0.0,
    }


@pytest.fixture
def mock_client(mock_ocr_config: dict[str, Any]) -> MockOCRClient:
    """Create a mock OCR client."""
    return MockOCRClient(config=mock_ocr_config)


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing exports at a temporary directory."""
    return Settings(
        ocr_engine="mock",
        export_dir=str(tmp_path / "exports"),
        drive_api_url="https://drive.test/drive/v3",
    )


@pytest.fixture
def make_text_item():
    """Factory for image items echoed back by the mock client."""
    return text_item


@pytest.fixture
def make_text_listing():
    """Factory for listings of echoable items from (name, text) pairs."""
    return text_listing


@pytest.fixture
def make_pdf_bytes():
    """Factory for blank PDFs with a given page count."""
    return make_pdf
