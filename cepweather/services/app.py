"""
FastAPI application scaffolding shared by both services.

Builds the application with a lifespan that owns the outbound HTTP
client (unless one is injected) and flushes the tracing runtime on
shutdown, plus an untraced health endpoint.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import httpx
from fastapi import FastAPI

from cepweather import __version__
from cepweather.config import Settings
from cepweather.tracing.instrumentation import instrument_httpx
from cepweather.tracing.setup import TracingRuntime

logger = logging.getLogger(__name__)


def create_base_app(
    title: str,
    settings: Settings,
    tracing: TracingRuntime,
    client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Create a FastAPI app wired to a tracing runtime and HTTP client.

    Args:
        title: Service name, used as the app title and in logs
        settings: Loaded settings
        tracing: The service's tracing runtime
        client: Outbound client to use; when None the app creates and
                closes its own

    Returns:
        FastAPI application with `state.http_client` and `state.tracing`
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting: %s v%s", title, __version__)

        owned_client = app.state.http_client is None
        if owned_client:
            app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds)
        if settings.instrument_httpx:
            instrument_httpx(app.state.http_client, tracing)

        logger.info("Application startup complete - ready to accept requests")

        yield

        logger.info("Application shutting down: %s", title)
        if owned_client:
            await app.state.http_client.aclose()
            app.state.http_client = None
        tracing.shutdown()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title=title,
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.http_client = client
    app.state.tracing = tracing
    app.state.settings = settings

    @app.get("/health", tags=["monitoring"])
    async def health_check() -> Dict[str, Any]:
        return {"status": "healthy", "service": title}

    return app
