"""Shared fixtures: in-memory tracing runtimes and fake upstream services."""

from __future__ import annotations

from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import httpx
import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from cepweather.config import Settings
from cepweather.tracing.setup import TracingRuntime, setup_tracing

VIACEP_HOST = "viacep.test"
WEATHER_HOST = "weather.test"
RESOLVER_HOST = "service-b.test"

TRACEPARENT = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
TRACE_ID = 0x4bf92f3577b34da6a3ce929d0e0e4736
PARENT_SPAN_ID = 0x00f067aa0ba902b7


def make_runtime(service_name: str) -> Tuple[TracingRuntime, InMemorySpanExporter]:
    """Build a hermetic runtime that exports synchronously to memory."""
    exporter = InMemorySpanExporter()
    runtime = setup_tracing(
        service_name,
        collector_endpoint=None,
        use_batch_processor=False,
        additional_exporters=[exporter],
        set_global=False,
    )
    return runtime, exporter


class FakeUpstreams:
    """httpx MockTransport handler standing in for ViaCEP and WeatherAPI.

    Each upstream is a callable taking the request and returning a
    response (or raising an httpx transport error).
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.directory: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"localidade": "São Paulo", "erro": False}
        )
        self.weather: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"current": {"temp_c": 25.0}}
        )

    def set_directory(self, status: int = 200, json: Any = None, content: Optional[bytes] = None) -> None:
        self.directory = lambda request: httpx.Response(status, json=json, content=content)

    def set_weather(self, status: int = 200, json: Any = None, content: Optional[bytes] = None) -> None:
        self.weather = lambda request: httpx.Response(status, json=json, content=content)

    def requests_to(self, host: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.host == host]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == VIACEP_HOST:
            return self.directory(request)
        if request.url.host == WEATHER_HOST:
            return self.weather(request)
        return httpx.Response(502, text=f"unexpected host {request.url.host}")


@pytest.fixture
def settings() -> Settings:
    """Settings pointing every outbound URL at test hosts."""
    return Settings(
        resolver_url=f"http://{RESOLVER_HOST}/weather",
        viacep_base_url=f"https://{VIACEP_HOST}/ws",
        weather_api_url=f"http://{WEATHER_HOST}/v1/current.json",
        weather_api_key="test-key",
        http_timeout_seconds=5.0,
    )


@pytest.fixture
def upstreams() -> FakeUpstreams:
    return FakeUpstreams()


@pytest.fixture
def resolver_tracing() -> Iterator[Tuple[TracingRuntime, InMemorySpanExporter]]:
    runtime, exporter = make_runtime("service-b")
    yield runtime, exporter
    runtime.shutdown()


@pytest.fixture
def edge_tracing() -> Iterator[Tuple[TracingRuntime, InMemorySpanExporter]]:
    runtime, exporter = make_runtime("service-a")
    yield runtime, exporter
    runtime.shutdown()


def spans_by_name(exporter: InMemorySpanExporter) -> Dict[str, list]:
    grouped: Dict[str, list] = {}
    for span in exporter.get_finished_spans():
        grouped.setdefault(span.name, []).append(span)
    return grouped
