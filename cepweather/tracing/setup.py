"""
OpenTelemetry tracing runtime shared by the edge and resolver services.

`setup_tracing` builds one TracerProvider per service with a batching
Zipkin exporter and a W3C TraceContext + Baggage propagator. The returned
TracingRuntime is passed explicitly into the application factories and
exposes span creation and header propagation.

Example:
    >>> from cepweather.tracing import setup_tracing
    >>>
    >>> runtime = setup_tracing(
    ...     service_name="service-b",
    ...     collector_endpoint="http://zipkin:9411/api/v2/spans",
    ... )
    >>> parent = runtime.extract(request.headers)
    >>> with runtime.start_span("handleWeather", parent) as (span, ctx):
    ...     headers = {}
    ...     runtime.inject(headers, ctx)
    >>> runtime.shutdown()
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator, Mapping, MutableMapping, Optional, Tuple

from opentelemetry import propagate, trace
from opentelemetry.baggage.propagation import W3CBaggagePropagator
from opentelemetry.context import Context
from opentelemetry.propagators.composite import CompositePropagator
from opentelemetry.propagators.textmap import TextMapPropagator
from opentelemetry.sdk.resources import Resource, SERVICE_NAME
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import Status, StatusCode
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

from cepweather.core.errors import TracerInitError
from cepweather.tracing.exporter import LoggedSpanExporter

logger = logging.getLogger(__name__)

def build_propagator() -> TextMapPropagator:
    """Return the composite TraceContext + Baggage propagator."""
    return CompositePropagator([
        TraceContextTextMapPropagator(),
        W3CBaggagePropagator(),
    ])


def _has_error_status(span: trace.Span) -> bool:
    status = getattr(span, "status", None)
    return status is not None and status.status_code is StatusCode.ERROR


@dataclass
class TracingRuntime:
    """Per-service tracer provider plus propagation helpers.

    Attributes:
        service_name: Value of the service.name resource attribute
        provider: The service's TracerProvider
        propagator: Text-map propagator used for inject/extract
    """
    service_name: str
    provider: TracerProvider
    propagator: TextMapPropagator = field(default_factory=build_propagator)
    _shutdown: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def tracer(self) -> trace.Tracer:
        return self.provider.get_tracer(self.service_name)

    @contextmanager
    def start_span(
        self,
        name: str,
        parent: Optional[Context] = None,
    ) -> Iterator[Tuple[trace.Span, Context]]:
        """Start a span as a child of parent and end it on every exit path.

        Exceptions escaping the block are recorded on the span and set its
        status to ERROR before being re-raised.

        Args:
            name: Span name
            parent: Parent context (None starts a new trace)

        Yields:
            Tuple of (span, context carrying the span)
        """
        span = self.tracer.start_span(name, context=parent)
        with trace.use_span(
            span,
            end_on_exit=True,
            record_exception=False,
            set_status_on_exception=False,
        ):
            try:
                yield span, trace.set_span_in_context(span, parent)
            except Exception as exc:
                # Errors already classified by the block keep their status.
                if not _has_error_status(span):
                    span.record_exception(exc)
                    span.set_status(Status(StatusCode.ERROR, f"{type(exc).__name__}: {exc}"))
                raise

    def inject(self, headers: MutableMapping[str, str], context: Optional[Context] = None) -> None:
        """Write propagation headers for context into an outbound carrier."""
        self.propagator.inject(headers, context=context)

    def extract(self, headers: Mapping[str, str]) -> Context:
        """Return the parent context carried by inbound headers.

        Missing or malformed headers yield an empty context, so the next
        span becomes a trace root.
        """
        return self.propagator.extract(headers)

    def shutdown(self) -> None:
        """Flush pending spans and shut the provider down (idempotent)."""
        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
        logger.info("Shutting down tracing for %s...", self.service_name)
        self.provider.shutdown()
        logger.info("Tracing shutdown complete")


def setup_tracing(
    service_name: str,
    collector_endpoint: Optional[str] = None,
    use_batch_processor: bool = True,
    additional_exporters: Optional[list[SpanExporter]] = None,
    set_global: bool = True,
) -> TracingRuntime:
    """Setup OpenTelemetry tracing for one service.

    Args:
        service_name: Name of the service (service.name resource attribute).
        collector_endpoint: Zipkin span endpoint. None disables the Zipkin exporter.
        use_batch_processor: Use BatchSpanProcessor (True) or SimpleSpanProcessor.
        additional_exporters: Additional SpanExporters to use alongside Zipkin.
        set_global: Also install the provider and propagator globally.

    Returns:
        The configured TracingRuntime.

    Raises:
        TracerInitError: If the provider or exporter cannot be constructed.
    """
    exporters: list[SpanExporter] = []
    try:
        resource = Resource.create({
            SERVICE_NAME: service_name,
        })
        provider = TracerProvider(resource=resource)

        if collector_endpoint:
            from opentelemetry.exporter.zipkin.json import ZipkinExporter

            exporters.append(LoggedSpanExporter(ZipkinExporter(endpoint=collector_endpoint)))

        if additional_exporters:
            exporters.extend(additional_exporters)

        for exporter in exporters:
            if use_batch_processor:
                provider.add_span_processor(BatchSpanProcessor(exporter))
            else:
                provider.add_span_processor(SimpleSpanProcessor(exporter))
    except Exception as e:
        raise TracerInitError(f"failed to initialize tracer for {service_name}: {e}") from e

    runtime = TracingRuntime(service_name=service_name, provider=provider)

    if set_global:
        trace.set_tracer_provider(provider)
        propagate.set_global_textmap(runtime.propagator)

    logger.info(
        "Tracing configured: service=%s, collector=%s, exporters=%d",
        service_name,
        collector_endpoint,
        len(exporters),
    )

    return runtime

