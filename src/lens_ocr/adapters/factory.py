"""Factory for creating OCR client instances."""

from typing import Any, Dict

import structlog

from lens_ocr.adapters.base import BaseOCRClient
from lens_ocr.adapters.gemini_client import GeminiOCRClient
from lens_ocr.adapters.mock_client import MockOCRClient
from lens_ocr.config import Settings

logger = structlog.get_logger(__name__)


class OCRClientFactory:
    """Factory for creating OCR clients based on configuration."""

    # Registry of available clients
    _clients: Dict[str, type[BaseOCRClient]] = {
        "mock": MockOCRClient,
        "gemini": GeminiOCRClient,
    }

    @classmethod
    def create(cls, client_type: str, config: dict[str, Any]) -> BaseOCRClient:
        """
        Create an OCR client instance.

        Args:
            client_type: Type of client to create (gemini, mock, etc.).
            config: Configuration dictionary for the client.

        Returns:
            Initialized OCR client instance.

        Raises:
            ValueError: If client type is not supported.
        """
        client_type = client_type.lower()

        if client_type not in cls._clients:
            available = ", ".join(cls._clients.keys())
            raise ValueError(
                f"Unknown OCR client type: {client_type}. "
                f"Available clients: {available}"
            )

        client_class = cls._clients[client_type]
        logger.info(
            "creating_ocr_client",
            client_type=client_type,
            client_class=client_class.__name__,
        )

        return client_class(config)

    @classmethod
    def create_from_settings(cls, settings: Settings) -> BaseOCRClient:
        """
        Create an OCR client from application settings.

        Args:
            settings: Application settings object.

        Returns:
            Initialized OCR client instance.
        """
        client_type = settings.ocr_engine.lower()

        # The mock client never leaves the process; it only needs its latency
        if client_type == "mock":
            config: dict[str, Any] = {
                "delay_ms": settings.mock_delay_ms,
                "fail_rate": 0.0,
            }
        else:
            config = {
                "api_key": settings.gemini_api_key,
                "model_name": settings.model_name,
                "temperature": settings.ocr_temperature,
                "timeout": settings.ocr_timeout,
            }

        return cls.create(client_type, config)

    @classmethod
    def register_client(cls, name: str, client_class: type[BaseOCRClient]) -> None:
        """
        Register a custom OCR client.

        Args:
            name: Name to register the client under.
            client_class: OCR client class (must inherit from BaseOCRClient).

        Raises:
            TypeError: If client_class doesn't inherit from BaseOCRClient.
        """
        if not issubclass(client_class, BaseOCRClient):
            raise TypeError(
                f"{client_class.__name__} must inherit from BaseOCRClient"
            )

        logger.info(
            "registering_custom_ocr_client",
            name=name,
            client_class=client_class.__name__,
        )

        cls._clients[name.lower()] = client_class

    @classmethod
    def list_clients(cls) -> list[str]:
        """List all registered client types."""
        return list(cls._clients.keys())
