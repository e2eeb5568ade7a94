"""
Postal-code directory client (ViaCEP).

Resolves a validated CEP to its city name under a `fetchCityFromCEP`
span. Every failure is recorded on the span and surfaced to the caller
as a single ZipcodeNotFoundError.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import httpx
from opentelemetry.context import Context
from opentelemetry.trace import Span, Status, StatusCode
from pydantic import ValidationError

from cepweather.core.errors import ZipcodeNotFoundError
from cepweather.core.models import DirectoryResult
from cepweather.tracing.setup import TracingRuntime

logger = logging.getLogger(__name__)

SPAN_NAME = "fetchCityFromCEP"


def _fail(span: Span, cep: str, reason: str, cause: Optional[BaseException] = None) -> ZipcodeNotFoundError:
    error = cause if cause is not None else ZipcodeNotFoundError(reason)
    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, reason))
    logger.warning("Cannot resolve CEP %s: %s", cep, reason)
    return ZipcodeNotFoundError(f"cannot resolve zipcode {cep}: {reason}")


async def fetch_city(
    client: httpx.AsyncClient,
    runtime: TracingRuntime,
    parent: Context,
    cep: str,
    base_url: str = "https://viacep.com.br/ws",
    timeout: float = 5.0,
) -> str:
    """Resolve a CEP to a city name.

    Args:
        client: Shared outbound HTTP client
        runtime: Tracing runtime of the calling service
        parent: Context of the handler span
        cep: Validated eight-digit CEP
        base_url: Directory base URL
        timeout: Total budget for the call in seconds

    Returns:
        The city ("localidade") for the CEP

    Raises:
        ZipcodeNotFoundError: On transport error, non-200 status, undecodable
            payload, or a not-found reply
    """
    with runtime.start_span(SPAN_NAME, parent) as (span, ctx):
        url = f"{base_url.rstrip('/')}/{cep}/json/"
        headers: dict[str, str] = {}
        runtime.inject(headers, ctx)

        try:
            response = await asyncio.wait_for(
                client.get(url, headers=headers, timeout=timeout),
                timeout,
            )
        except (httpx.HTTPError, asyncio.TimeoutError) as exc:
            raise _fail(span, cep, f"directory request failed: {exc!r}", exc) from exc

        if response.status_code != 200:
            raise _fail(span, cep, f"viaCEP returned status {response.status_code}")

        try:
            result = DirectoryResult.model_validate_json(response.content)
        except ValidationError as exc:
            raise _fail(span, cep, "invalid directory payload", exc) from exc

        if result.erro:
            raise _fail(span, cep, "CEP not found")

        span.set_attribute("city", result.localidade)
        logger.debug("CEP %s resolved to %s", cep, result.localidade)
        return result.localidade
