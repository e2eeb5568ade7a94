"""
LoggedSpanExporter - SpanExporter wrapper that never lets export errors escape.

The wrapped exporter (normally the Zipkin JSON exporter) ships finished
spans to the collector. Any exception it raises is logged and reported
to the span processor as a failed export, so a down collector can never
affect request handling.

Example:
    >>> from opentelemetry.exporter.zipkin.json import ZipkinExporter
    >>> from opentelemetry.sdk.trace.export import BatchSpanProcessor
    >>> exporter = LoggedSpanExporter(ZipkinExporter(endpoint="http://zipkin:9411/api/v2/spans"))
    >>> processor = BatchSpanProcessor(exporter)
"""

from __future__ import annotations

import logging
import threading
from typing import Sequence

from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult

logger = logging.getLogger(__name__)


class LoggedSpanExporter(SpanExporter):
    """SpanExporter that delegates to another exporter and logs its failures.

    Attributes:
        exporter: The wrapped exporter
        failed_batches: Number of batches that could not be exported
        exported_spans: Number of spans exported successfully
    """

    def __init__(self, exporter: SpanExporter) -> None:
        self.exporter = exporter
        self._lock = threading.Lock()
        self.failed_batches = 0
        self.exported_spans = 0

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        """Export a batch of spans through the wrapped exporter.

        Args:
            spans: Sequence of completed spans to export.

        Returns:
            The wrapped exporter's result, or FAILURE if it raised.
        """
        if not spans:
            return SpanExportResult.SUCCESS

        try:
            result = self.exporter.export(spans)
        except Exception as e:
            logger.error(
                "Failed to export %d spans via %s: %s",
                len(spans),
                type(self.exporter).__name__,
                e,
            )
            self._record_failure()
            return SpanExportResult.FAILURE

        if result is SpanExportResult.SUCCESS:
            with self._lock:
                self.exported_spans += len(spans)
            logger.debug("Exported %d spans", len(spans))
        else:
            logger.error(
                "Collector rejected %d spans via %s",
                len(spans),
                type(self.exporter).__name__,
            )
            self._record_failure()
        return result

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        try:
            return self.exporter.force_flush(timeout_millis)
        except Exception as e:
            logger.error("Span exporter flush failed: %s", e)
            return False

    def shutdown(self) -> None:
        """Shutdown the wrapped exporter, logging any failure."""
        try:
            self.exporter.shutdown()
        except Exception as e:
            logger.error("Span exporter shutdown failed: %s", e)

    def _record_failure(self) -> None:
        with self._lock:
            self.failed_batches += 1
