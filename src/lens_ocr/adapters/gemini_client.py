"""Gemini OCR client using the google-genai SDK."""

import os
from typing import Any, Optional

import httpx
import structlog
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

from lens_ocr.adapters.base import (
    BaseOCRClient,
    MalformedResponseError,
    OcrResult,
    ServiceError,
)
from lens_ocr.adapters.prompts import OCR_PROMPT, OCR_RESPONSE_SCHEMA

logger = structlog.get_logger(__name__)


class GeminiOCRClient(BaseOCRClient):
    """OCR client that sends each document to a Gemini vision model."""

    supports_pdf = True

    def __init__(self, config: dict[str, Any]) -> None:
        """
        Initialize the Gemini client.

        Args:
            config: Configuration with:
                - api_key: Gemini API key (default: GEMINI_API_KEY / GOOGLE_API_KEY)
                - model_name: Model name (default: gemini-flash-lite-latest)
                - temperature: Sampling temperature (default: 0.1)
                - timeout: Request timeout in seconds (default: 120)
        """
        super().__init__(config)

        self.api_key = (
            config.get("api_key")
            or os.getenv("GEMINI_API_KEY")
            or os.getenv("GOOGLE_API_KEY")
        )
        self.model_name = config.get("model_name", "gemini-flash-lite-latest")
        self.temperature = config.get("temperature", 0.1)
        self.timeout = config.get("timeout", 120)

        self._client: Optional[genai.Client] = None

        logger.info("gemini_ocr_client_initialized", model=self.model_name)

    def _get_client(self) -> genai.Client:
        """Get or create the SDK client."""
        if self._client is None:
            if not self.api_key:
                raise ServiceError("Gemini API key is not configured")
            self._client = genai.Client(
                api_key=self.api_key,
                http_options=types.HttpOptions(timeout=self.timeout * 1000),
            )
        return self._client

    def _build_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=OCR_RESPONSE_SCHEMA,
            temperature=self.temperature,
        )

    async def extract(self, data: bytes, mime_type: str) -> OcrResult:
        """
        Run OCR on one document with Gemini.

        Args:
            data: Raw document bytes.
            mime_type: MIME type of the document.

        Returns:
            Parsed OcrResult.
        """
        client = self._get_client()

        logger.info(
            "calling_gemini_ocr",
            model=self.model_name,
            mime_type=mime_type,
            size_bytes=len(data),
        )

        try:
            response = await client.aio.models.generate_content(
                model=self.model_name,
                contents=[
                    types.Part.from_text(text=OCR_PROMPT),
                    types.Part.from_bytes(data=data, mime_type=mime_type),
                ],
                config=self._build_config(),
            )
        except (genai_errors.APIError, httpx.HTTPError) as e:
            logger.error(
                "gemini_api_call_failed", error=str(e), error_type=type(e).__name__
            )
            raise ServiceError(f"Gemini API call failed: {str(e)}", original_error=e)
        except genai_errors.UnknownApiResponseError as e:
            logger.error("gemini_response_unreadable", error=str(e))
            raise MalformedResponseError(
                f"Gemini returned an unreadable response: {str(e)}", original_error=e
            )

        return self._parse_response(response)

    def _parse_response(self, response: Any) -> OcrResult:
        """Validate the structured payload of a Gemini response."""
        text = getattr(response, "text", None)
        if not text:
            logger.error("gemini_empty_response", model=self.model_name)
            raise MalformedResponseError("No response body from Gemini")

        try:
            result = OcrResult.model_validate_json(text)
        except ValidationError as e:
            logger.error("gemini_response_invalid", error=str(e), preview=text[:200])
            raise MalformedResponseError(
                f"Gemini response does not match the OCR schema: {str(e)}",
                original_error=e,
            )

        logger.info(
            "gemini_ocr_completed",
            language=result.language,
            confidence=result.confidence,
            text_length=len(result.corrected_text),
        )
        return result

    async def cleanup(self) -> None:
        """Drop the SDK client."""
        if self._client is not None:
            self._client = None
            logger.info("gemini_ocr_client_closed")
