"""
Edge Service (A).

POST /cep validates the CEP locally and forwards valid requests to the
resolver's /weather endpoint, carrying the trace context. The resolver's
status code, Content-Type and body are relayed to the client unchanged;
the body is streamed rather than buffered.

Example:
    Run with uvicorn:

        $ cepweather edge --port 8080
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import Response, StreamingResponse
from opentelemetry.context import Context
from opentelemetry.trace import Status, StatusCode
from starlette.types import Receive, Scope, Send

from cepweather.config import Settings
from cepweather.core.cep import decode_cep_request, validate_cep
from cepweather.core.errors import (
    CEPWeatherError,
    MethodNotAllowedError,
    UpstreamUnavailableError,
)
from cepweather.core.models import CEPRequest
from cepweather.services.app import create_base_app
from cepweather.services.disconnect import run_until_disconnect
from cepweather.services.responses import ROUTE_METHODS, error_response, mark_error
from cepweather.tracing.setup import TracingRuntime

logger = logging.getLogger(__name__)

HANDLER_SPAN = "handleCEP"
RESOLVER_UNAVAILABLE = "Service B unavailable"


async def forward_to_resolver(
    client: httpx.AsyncClient,
    tracing: TracingRuntime,
    ctx: Context,
    settings: Settings,
    cep_request: CEPRequest,
) -> httpx.Response:
    """POST the CEP to the resolver and return the open, unread response.

    The caller owns the returned response and must close it.

    Raises:
        UpstreamUnavailableError: On any transport failure or timeout
    """
    headers = {"Content-Type": "application/json"}
    tracing.inject(headers, ctx)

    timeout = settings.http_timeout_seconds
    outbound = client.build_request(
        "POST",
        settings.resolver_url,
        content=cep_request.model_dump_json(),
        headers=headers,
        timeout=timeout,
    )
    try:
        return await asyncio.wait_for(client.send(outbound, stream=True), timeout)
    except (httpx.HTTPError, asyncio.TimeoutError) as exc:
        logger.warning("Resolver at %s unavailable: %r", settings.resolver_url, exc)
        raise UpstreamUnavailableError(RESOLVER_UNAVAILABLE) from exc


async def _relay(upstream: httpx.Response) -> AsyncIterator[bytes]:
    async for chunk in upstream.aiter_raw():
        yield chunk


class RelayResponse(StreamingResponse):
    """Streams an open resolver response and always closes it.

    The upstream is closed once the ASGI call ends, including when the
    client goes away before the first chunk is sent.
    """

    def __init__(self, upstream: httpx.Response) -> None:
        super().__init__(
            _relay(upstream),
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
        )
        self.upstream = upstream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await self.upstream.aclose()


async def _handle(request: Request, ctx: Context) -> httpx.Response:
    if request.method != "POST":
        raise MethodNotAllowedError(f"method {request.method} not allowed")

    cep_request = decode_cep_request(await request.body())
    validate_cep(cep_request.cep)

    app = request.app
    return await run_until_disconnect(
        request,
        forward_to_resolver(app.state.http_client, app.state.tracing, ctx, app.state.settings, cep_request),
    )


def create_edge_app(
    settings: Settings,
    tracing: TracingRuntime,
    client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Build the edge application.

    Args:
        settings: Loaded settings (resolver URL, timeout)
        tracing: Tracing runtime for service A
        client: Optional outbound HTTP client (tests inject transports)

    Returns:
        FastAPI application serving POST /cep
    """
    app = create_base_app(settings.edge_service_name, settings, tracing, client)

    @app.api_route("/cep", methods=ROUTE_METHODS)
    async def handle_cep(request: Request) -> Response:
        parent = tracing.extract(request.headers)
        with tracing.start_span(HANDLER_SPAN, parent) as (span, ctx):
            try:
                upstream = await _handle(request, ctx)
            except CEPWeatherError as exc:
                response = error_response(exc, RESOLVER_UNAVAILABLE)
                mark_error(span, exc, response.status_code)
                logger.info("POST /cep -> %d (%s)", response.status_code, type(exc).__name__)
                return response

            span.set_attribute("http.response.status_code", upstream.status_code)
            if upstream.status_code >= 400:
                span.set_status(
                    Status(StatusCode.ERROR, f"resolver returned status {upstream.status_code}")
                )
            logger.info("POST /cep -> %d (forwarded)", upstream.status_code)

            return RelayResponse(upstream)

    return app
