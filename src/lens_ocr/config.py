"""Configuration management for the lens-ocr workflow."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = Field(default="lens-ocr", description="Application name")
    log_level: str = Field(default="INFO", description="Logging level")
    environment: str = Field(default="development", description="Environment name")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # OCR Client Configuration
    ocr_engine: str = Field(default="gemini", description="OCR client to use")
    gemini_api_key: Optional[str] = Field(
        default=None,
        description="Gemini API key (falls back to GEMINI_API_KEY/GOOGLE_API_KEY)",
    )
    model_name: str = Field(
        default="gemini-flash-lite-latest",
        description="Vision-language model used for OCR",
    )
    ocr_temperature: float = Field(
        default=0.1,
        description="Sampling temperature for OCR calls",
    )
    ocr_timeout: int = Field(
        default=120,
        description="OCR request timeout in seconds",
    )
    mock_delay_ms: int = Field(
        default=0,
        description="Simulated latency of the mock client in milliseconds",
    )

    # Google Drive Configuration
    drive_api_url: str = Field(
        default="https://www.googleapis.com/drive/v3",
        description="Drive REST API base URL",
    )
    drive_api_key: Optional[str] = Field(
        default=None,
        description="Optional API key appended to Drive listing calls",
    )
    drive_page_size: int = Field(
        default=1000,
        description="Files requested per Drive listing page",
    )
    drive_max_pages: int = Field(
        default=50,
        description="Listing pages followed before the folder is rejected",
    )
    drive_timeout: int = Field(
        default=30,
        description="Drive API timeout in seconds",
    )
    drive_token_skew: int = Field(
        default=60,
        description="Seconds before expiry at which a token is treated as expired",
    )
    output_prefix: str = Field(
        default="ocr",
        description="Name prefix of the tool's own output files, skipped on listing",
    )

    # Document Handling
    pdf_policy: Literal["whole", "per_page"] = Field(
        default="whole",
        description="Send PDFs whole or split them into one OCR call per page",
    )
    pdf_render_scale: float = Field(
        default=2.0,
        description="Render scale used when rasterising PDF pages",
    )

    # Export
    export_dir: str = Field(
        default="./exports",
        description="Directory receiving exported text files",
    )
    export_filename_prefix: str = Field(
        default="ocr-output",
        description="Prefix of exported text file names",
    )
    auto_export: bool = Field(
        default=True,
        description="Export the consolidated text when a batch completes",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
