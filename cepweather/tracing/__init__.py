"""
cepweather.tracing - Shared OpenTelemetry tracing runtime.

Example:
    >>> from cepweather.tracing import setup_tracing
    >>> runtime = setup_tracing("service-a", "http://zipkin:9411/api/v2/spans")
    >>> with runtime.start_span("handleCEP", runtime.extract(headers)) as (span, ctx):
    ...     runtime.inject(outbound_headers, ctx)
"""

from cepweather.tracing.exporter import LoggedSpanExporter
from cepweather.tracing.instrumentation import instrument_httpx, instrument_logging
from cepweather.tracing.setup import (
    TracingRuntime,
    build_propagator,
    setup_tracing,
)

__all__ = [
    # Setup
    "TracingRuntime",
    "build_propagator",
    "setup_tracing",
    # Export
    "LoggedSpanExporter",
    # Instrumentation
    "instrument_httpx",
    "instrument_logging",
]
