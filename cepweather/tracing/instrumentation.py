"""
Optional OpenTelemetry auto-instrumentation.

Outbound trace headers are always injected explicitly by the services;
these helpers add the extra client spans and log correlation that the
OpenTelemetry contrib instrumentors provide when they are installed.

Example:
    >>> from cepweather.tracing.instrumentation import instrument_httpx
    >>> client = httpx.AsyncClient()
    >>> instrument_httpx(client, runtime)
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from cepweather.tracing.setup import TracingRuntime

logger = logging.getLogger(__name__)


def instrument_httpx(client: httpx.AsyncClient, runtime: Optional[TracingRuntime] = None) -> bool:
    """Instrument one httpx client so every outbound call gets a client span.

    Args:
        client: The AsyncClient used for outbound calls.
        runtime: Runtime whose provider should receive the spans
                 (defaults to the global provider).

    Returns:
        True if instrumentation was applied.
    """
    try:
        from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
    except ImportError:
        logger.warning(
            "opentelemetry-instrumentation-httpx not installed. "
            "Install with: pip install cepweather[instrumentation]"
        )
        return False

    provider = runtime.provider if runtime else None
    HTTPXClientInstrumentor.instrument_client(client, tracer_provider=provider)
    logger.info("HTTPX client instrumentation enabled")
    return True


def instrument_logging() -> bool:
    """Inject trace_id and span_id into every log record.

    Returns:
        True if instrumentation was applied.
    """
    try:
        from opentelemetry.instrumentation.logging import LoggingInstrumentor
    except ImportError:
        logger.warning(
            "opentelemetry-instrumentation-logging not installed. "
            "Install with: pip install cepweather[instrumentation]"
        )
        return False

    LoggingInstrumentor().instrument()
    logger.info("Logging instrumentation enabled")
    return True
