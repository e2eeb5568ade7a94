"""
Resolver Service (B).

POST /weather re-validates the CEP, resolves it to a city through the
postal-code directory, fetches the current temperature for that city and
returns it in Celsius, Fahrenheit and Kelvin.

Span tree per request::

    handleWeather
    ├── fetchCityFromCEP
    └── fetchTemperature

Example:
    Run with uvicorn:

        $ cepweather resolver --port 8081
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from opentelemetry.context import Context
from opentelemetry.trace import Span

from cepweather.clients.directory import fetch_city
from cepweather.clients.weather import fetch_temperature
from cepweather.config import Settings
from cepweather.core.cep import decode_cep_request, validate_cep
from cepweather.core.errors import CEPWeatherError, MethodNotAllowedError
from cepweather.core.models import WeatherResponse
from cepweather.core.temperature import celsius_to_fahrenheit, celsius_to_kelvin
from cepweather.services.app import create_base_app
from cepweather.services.disconnect import run_until_disconnect
from cepweather.services.responses import ROUTE_METHODS, error_response, mark_error
from cepweather.tracing.setup import TracingRuntime

logger = logging.getLogger(__name__)

HANDLER_SPAN = "handleWeather"
TEMPERATURE_FAILED = "Failed to fetch temperature"


async def resolve_weather(
    client: httpx.AsyncClient,
    tracing: TracingRuntime,
    ctx: Context,
    settings: Settings,
    cep: str,
) -> WeatherResponse:
    """Resolve a validated CEP to its city and current temperatures.

    Raises:
        ZipcodeNotFoundError: If the directory cannot resolve the CEP
        TemperatureFetchError: If the weather provider call fails
    """
    city = await fetch_city(
        client,
        tracing,
        ctx,
        cep,
        base_url=settings.viacep_base_url,
        timeout=settings.http_timeout_seconds,
    )
    temp_c = await fetch_temperature(
        client,
        tracing,
        ctx,
        city,
        api_key=settings.weather_api_key,
        api_url=settings.weather_api_url,
        timeout=settings.http_timeout_seconds,
    )
    return WeatherResponse(
        city=city,
        temp_C=temp_c,
        temp_F=celsius_to_fahrenheit(temp_c),
        temp_K=celsius_to_kelvin(temp_c),
    )


async def _handle(request: Request, span: Span, ctx: Context) -> WeatherResponse:
    if request.method != "POST":
        raise MethodNotAllowedError(f"method {request.method} not allowed")

    cep_request = decode_cep_request(await request.body())
    span.set_attribute("cep", cep_request.cep)
    cep = validate_cep(cep_request.cep)

    app = request.app
    return await run_until_disconnect(
        request,
        resolve_weather(app.state.http_client, app.state.tracing, ctx, app.state.settings, cep),
    )


def create_resolver_app(
    settings: Settings,
    tracing: TracingRuntime,
    client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Build the resolver application.

    Args:
        settings: Loaded settings (directory/weather URLs, API key, timeout)
        tracing: Tracing runtime for service B
        client: Optional outbound HTTP client (tests inject mock transports)

    Returns:
        FastAPI application serving POST /weather
    """
    if settings.uses_default_api_key:
        logger.warning(
            "WEATHER_API_KEY is not set; weather provider calls will use a placeholder key"
        )

    app = create_base_app(settings.resolver_service_name, settings, tracing, client)

    @app.api_route("/weather", methods=ROUTE_METHODS)
    async def handle_weather(request: Request) -> Response:
        parent = tracing.extract(request.headers)
        with tracing.start_span(HANDLER_SPAN, parent) as (span, ctx):
            try:
                result = await _handle(request, span, ctx)
            except CEPWeatherError as exc:
                response = error_response(exc, TEMPERATURE_FAILED)
                mark_error(span, exc, response.status_code)
                logger.info(
                    "POST /weather -> %d (%s)", response.status_code, type(exc).__name__
                )
                return response

            span.set_attribute("http.response.status_code", 200)
            logger.info("POST /weather -> 200 city=%s temp_C=%s", result.city, result.temp_C)
            return JSONResponse(result.model_dump(), status_code=200)

    return app
