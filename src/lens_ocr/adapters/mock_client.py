"""Mock OCR client for testing and development."""

import asyncio
import random
from typing import Any

from lens_ocr.adapters.base import (
    BaseOCRClient,
    MalformedResponseError,
    OcrCorrection,
    OcrResult,
    ServiceError,
)


class MockOCRClient(BaseOCRClient):
    """Mock OCR client that returns deterministic results without a remote call."""

    supports_pdf = True

    def __init__(self, config: dict[str, Any]) -> None:
        """
        Initialize the mock OCR client.

        Args:
            config: Configuration dictionary. Supports:
                - delay_ms: Simulated call latency in milliseconds (default: 0)
                - fail_rate: Probability of simulated failure 0.0-1.0 (default: 0.0)
                - fail_on: Call indices (0-based) that raise ServiceError
                - malformed_on: Call indices that raise MalformedResponseError
                - language: Reported language (default: "en")
        """
        super().__init__(config)
        self.delay_ms = config.get("delay_ms", 0)
        self.fail_rate = config.get("fail_rate", 0.0)
        self.fail_on: set[int] = set(config.get("fail_on", ()))
        self.malformed_on: set[int] = set(config.get("malformed_on", ()))
        self.language = config.get("language", "en")
        self.call_count = 0
        self.calls: list[tuple[bytes, str]] = []

    async def extract(self, data: bytes, mime_type: str) -> OcrResult:
        """
        Return a mock OCR result.

        UTF-8 payloads are echoed back as the corrected text; anything else is
        described by type and size.

        Raises:
            ServiceError: On a simulated transport failure.
            MalformedResponseError: On a simulated unparseable response.
        """
        index = self.call_count
        self.call_count += 1
        self.calls.append((data, mime_type))

        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000.0)

        if index in self.fail_on or (
            self.fail_rate > 0 and random.random() < self.fail_rate
        ):
            raise ServiceError(f"Mock OCR simulated failure (call {index})")
        if index in self.malformed_on:
            raise MalformedResponseError(f"Mock OCR simulated empty response (call {index})")

        text = self._text_for(data, mime_type)
        stripped = text.strip()

        return OcrResult(
            raw_text=text,
            corrected_text=stripped,
            corrections=(
                [OcrCorrection(original=text, fixed=stripped, reason="Trimmed whitespace")]
                if stripped != text
                else []
            ),
            language=self.language,
            confidence=1.0,
        )

    def _text_for(self, data: bytes, mime_type: str) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError:
            return f"[mock OCR of {mime_type}, {len(data)} bytes]"
