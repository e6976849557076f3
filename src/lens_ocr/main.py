"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lens_ocr import __version__
from lens_ocr.adapters.factory import OCRClientFactory
from lens_ocr.config import Settings, get_settings
from lens_ocr.routes import workflow_router
from lens_ocr.services.workflow import WorkflowService


def configure_logging(log_level: str) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    log_level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
    }

    level = log_level_map.get(log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


logger = structlog.get_logger()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Build the workflow service on startup and release it on shutdown."""
        configure_logging(settings.log_level)

        logger.info(
            "starting_application",
            app_name=settings.app_name,
            version=__version__,
            environment=settings.environment,
            ocr_engine=settings.ocr_engine,
        )

        ocr_client = OCRClientFactory.create_from_settings(settings)
        app.state.workflow_service = WorkflowService(settings, ocr_client)

        yield

        logger.info("shutting_down_application")
        await app.state.workflow_service.cleanup()

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        description="Document OCR workflow backed by a remote vision-language model",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(workflow_router)

    # Root endpoints
    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {
            "status": "healthy",
            "version": __version__,
            "service": settings.app_name,
            "ocr_engine": settings.ocr_engine,
        }

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "service": settings.app_name,
            "version": __version__,
            "status": "running",
            "docs": "/docs",
        }

    logger.info(
        "application_created",
        routes_count=len(app.routes),
    )

    return app


app = create_app()
