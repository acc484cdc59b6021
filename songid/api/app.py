"""Litestar app configuration and lifecycle management."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any

import httpx
from litestar import Litestar, Request, Response
from litestar.config.cors import CORSConfig
from litestar.exceptions import HTTPException
from litestar.status_codes import (
    HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from ..config import Config, get_config
from ..db.store import SongStore, create_store
from ..errors import SongIDError, ValidationError
from ..recognition.identifier import Identifier
from ..recognition.providers import build_providers
from .history_routes import get_identification, get_identifications, get_providers
from .identify_routes import identify_upload
from .state import AppState

logger = logging.getLogger(__name__)

# Multipart framing on top of the largest accepted file
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def songid_exception_handler(_: Request[Any, Any, Any], exc: SongIDError) -> Response[Any]:
    """Render SongID errors as {message, error} JSON."""
    if exc.status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{exc.message}: {exc.detail}")
    return Response(exc.to_dict(), status_code=exc.status_code)


def http_exception_handler(request: Request[Any, Any, Any], exc: HTTPException) -> Response[Any]:
    """Render Litestar's own HTTP errors in the same {message, error} shape.

    A request body over the server limit is an oversized upload and gets the
    same 400 as one caught while spooling.
    """
    if exc.status_code == HTTP_413_REQUEST_ENTITY_TOO_LARGE:
        max_mb = request.app.state.config.max_upload_bytes / 1024 / 1024
        return songid_exception_handler(
            request,
            ValidationError(f"File too large: request body exceeds {max_mb:.1f}MB limit"),
        )
    body = {"message": HTTPStatus(exc.status_code).phrase, "error": exc.detail}
    return Response(body, status_code=exc.status_code)


def internal_error_handler(request: Request[Any, Any, Any], exc: Exception) -> Response[Any]:
    """Log unexpected errors and return a 500 without a traceback."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
    return Response(
        {"message": "Internal server error", "error": str(exc)},
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
    )


def store_lifespan(store: SongStore) -> Callable[[Litestar], Any]:
    """Build a lifespan hook that prepares and releases the store."""

    @asynccontextmanager
    async def lifespan(_app: Litestar) -> AsyncGenerator[None, None]:
        await store.startup()
        logger.info(f"{type(store).__name__} ready")
        try:
            yield
        finally:
            await store.close()

    return lifespan


def create_app(
    config: Config | None = None,
    store: SongStore | None = None,
    identifier: Identifier | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Litestar:
    """Create the SongID application.

    Args:
        config: Configuration (global config if omitted)
        store: Song store (built from config if omitted)
        identifier: Identifier (built from config providers if omitted)
        transport: Optional httpx transport for provider calls

    Returns:
        Configured Litestar application
    """
    config = config or get_config()
    store = store or create_store(config)
    identifier = identifier or Identifier(build_providers(config, transport), config.demo_mode)

    configured = [p.name for p in identifier.configured_providers]
    logger.info(
        f"Recognition providers: {', '.join(configured) or 'none'} "
        + f"(demo mode: {config.demo_mode.value})"
    )

    # Allow CORS from development origins and production frontend
    allowed_origins = ["http://localhost:5173", "http://localhost:3000"]
    frontend_url = os.getenv("FRONTEND_URL")
    if frontend_url and frontend_url not in ["/", ""]:
        allowed_origins.append(frontend_url)

    cors_config = CORSConfig(
        allow_origins=allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app_state = AppState({"config": config, "store": store, "identifier": identifier})

    return Litestar(
        route_handlers=[
            identify_upload,
            get_identifications,
            get_identification,
            get_providers,
        ],
        cors_config=cors_config,
        state=app_state,
        exception_handlers={
            SongIDError: songid_exception_handler,
            HTTPException: http_exception_handler,
            Exception: internal_error_handler,
        },
        request_max_body_size=config.max_upload_bytes + MULTIPART_OVERHEAD_BYTES,
        lifespan=[store_lifespan(store)],
    )
