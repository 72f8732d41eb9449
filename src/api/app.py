# src/api/app.py — v1
"""FastAPI application: routers, CORS, error mapping and lifespan.

The service object is created once per application and stored on
``app.state``; every request resolves it through ``get_service``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from amrsp.api.facade import AmrspService
from amrsp.api.routers import documents_router, health_router
from amrsp.config.settings import Settings, load_settings
from amrsp.core.errors import (
    DocumentBufferingError,
    DocumentInputError,
    DocumentNotFoundError,
    InvalidCorrectionError,
    InvalidQuestionError,
    InvalidReviewDecisionError,
)
from amrsp.core.models import AuditEntry
from amrsp.version import __version__

logger = logging.getLogger(__name__)

_CLIENT_ERRORS = (
    DocumentInputError,
    InvalidCorrectionError,
    InvalidReviewDecisionError,
    InvalidQuestionError,
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP status codes with an ``{"error": ...}`` body."""

    async def client_error(request: Request, exc: Exception) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return _error(400, str(exc))

    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
            for err in exc.errors()
        )
        return _error(400, details or "Invalid request")

    async def not_found(request: Request, exc: DocumentNotFoundError) -> JSONResponse:
        return _error(404, str(exc))

    async def buffering_error(request: Request, exc: DocumentBufferingError) -> JSONResponse:
        logger.error("Upload could not be read: %s", exc)
        return _error(500, str(exc))

    for error_type in _CLIENT_ERRORS:
        app.add_exception_handler(error_type, client_error)
    app.add_exception_handler(RequestValidationError, validation_error)
    app.add_exception_handler(DocumentNotFoundError, not_found)
    app.add_exception_handler(DocumentBufferingError, buffering_error)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Record service start and stop in the system-wide audit log."""
    service: AmrspService = app.state.service
    service.store.add_audit_entry(AuditEntry(action="Service started", details=__version__))
    logger.info("%s API v%s started", service.settings.app_name, service.settings.api_version)
    yield
    service.store.add_audit_entry(AuditEntry(action="Service stopped"))
    logger.info("%s API stopped", service.settings.app_name)


def create_app(
    settings: Settings | None = None,
    service: AmrspService | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. Loaded from .env if None.
        service: Pre-built service (tests). Built from settings if None.

    Returns:
        Configured FastAPI instance.
    """
    if service is None:
        service = AmrspService(settings or load_settings())
    settings = service.settings

    app = FastAPI(
        title=settings.app_name,
        description="Automated multilingual research submission processing",
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(documents_router, prefix="/api")
    app.include_router(health_router, prefix="/api")
    return app
