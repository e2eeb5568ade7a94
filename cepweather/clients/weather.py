"""
Weather provider client (WeatherAPI current conditions).

Fetches the current Celsius temperature for a city under a
`fetchTemperature` span. Every failure is recorded on the span and
surfaced as a single TemperatureFetchError.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx
from opentelemetry.context import Context
from opentelemetry.trace import Span, Status, StatusCode
from pydantic import ValidationError

from cepweather.core.errors import TemperatureFetchError
from cepweather.core.models import WeatherSample
from cepweather.tracing.setup import TracingRuntime

logger = logging.getLogger(__name__)

SPAN_NAME = "fetchTemperature"


def _fail(span: Span, city: str, reason: str, cause: Optional[BaseException] = None) -> TemperatureFetchError:
    error = cause if cause is not None else TemperatureFetchError(reason)
    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, reason))
    logger.warning("Temperature fetch for %s failed: %s", city, reason)
    return TemperatureFetchError(f"fetch failed for {city}: {reason}")


async def fetch_temperature(
    client: httpx.AsyncClient,
    runtime: TracingRuntime,
    parent: Context,
    city: str,
    api_key: str,
    api_url: str = "http://api.weatherapi.com/v1/current.json",
    timeout: float = 5.0,
) -> float:
    """Fetch the current temperature in Celsius for a city.

    The city is sent as a query parameter, so spaces and accented
    characters are percent-encoded.

    Raises:
        TemperatureFetchError: On transport error, non-200 status, or a
            payload without current.temp_c
    """
    with runtime.start_span(SPAN_NAME, parent) as (span, ctx):
        headers: dict[str, str] = {}
        runtime.inject(headers, ctx)

        try:
            response = await asyncio.wait_for(
                client.get(
                    api_url,
                    params={"key": api_key, "q": city},
                    headers=headers,
                    timeout=timeout,
                ),
                timeout,
            )
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            raise _fail(span, city, f"weather request failed: {exc!r}", exc) from exc

        if response.status_code != 200:
            raise _fail(span, city, f"weatherAPI returned status {response.status_code}")

        try:
            sample = WeatherSample.model_validate_json(response.content)
        except ValidationError as exc:
            raise _fail(span, city, "invalid weather payload", exc) from exc

        span.set_attribute("tempC", sample.temp_c)
        return sample.temp_c
