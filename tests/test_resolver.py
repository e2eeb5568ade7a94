"""Tests for the resolver service (B): POST /weather."""

from __future__ import annotations

from typing import Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from opentelemetry.trace import StatusCode

from cepweather.config import Settings
from cepweather.services.resolver import create_resolver_app
from cepweather.tracing.setup import TracingRuntime

from conftest import (
    PARENT_SPAN_ID,
    TRACE_ID,
    TRACEPARENT,
    VIACEP_HOST,
    WEATHER_HOST,
    FakeUpstreams,
    spans_by_name,
)


@pytest.fixture
def client(
    settings: Settings,
    resolver_tracing: Tuple[TracingRuntime, InMemorySpanExporter],
    upstreams: FakeUpstreams,
) -> TestClient:
    runtime, _ = resolver_tracing
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstreams))
    return TestClient(create_resolver_app(settings, runtime, client=http_client))


@pytest.fixture
def exporter(resolver_tracing: Tuple[TracingRuntime, InMemorySpanExporter]) -> InMemorySpanExporter:
    return resolver_tracing[1]


class TestWeatherSuccess:
    """Happy path of POST /weather."""

    def test_returns_temperatures(self, client: TestClient) -> None:
        response = client.post("/weather", json={"cep": "01310100"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {
            "city": "São Paulo",
            "temp_C": 25,
            "temp_F": 77,
            "temp_K": 298,
        }

    def test_whole_temperatures_written_without_fraction(self, client: TestClient) -> None:
        response = client.post("/weather", json={"cep": "01310100"})

        assert response.content == (
            '{"city":"São Paulo","temp_C":25,"temp_F":77,"temp_K":298}'.encode("utf-8")
        )

    def test_conversion_of_fractional_temperature(
        self, client: TestClient, upstreams: FakeUpstreams
    ) -> None:
        upstreams.set_weather(json={"current": {"temp_c": 12.3}})

        data = client.post("/weather", json={"cep": "01310100"}).json()

        assert data["temp_C"] == 12.3
        assert data["temp_F"] == 12.3 * 1.8 + 32
        assert data["temp_K"] == 12.3 + 273

    def test_directory_url(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        client.post("/weather", json={"cep": "01310100"})

        (request,) = upstreams.requests_to(VIACEP_HOST)
        assert request.method == "GET"
        assert str(request.url) == f"https://{VIACEP_HOST}/ws/01310100/json/"

    def test_weather_query_is_encoded(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        """The city travels percent-encoded in the q parameter."""
        client.post("/weather", json={"cep": "01310100"})

        (request,) = upstreams.requests_to(WEATHER_HOST)
        assert request.url.path == "/v1/current.json"
        assert request.url.params["key"] == "test-key"
        assert request.url.params["q"] == "São Paulo"
        assert " " not in str(request.url)
        assert "%C3%A3" in str(request.url)

    def test_city_with_accents_and_spaces(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        upstreams.set_directory(json={"localidade": "Santa Bárbara d'Oeste"})

        response = client.post("/weather", json={"cep": "13450000"})

        assert response.status_code == 200
        assert response.json()["city"] == "Santa Bárbara d'Oeste"
        (request,) = upstreams.requests_to(WEATHER_HOST)
        assert request.url.params["q"] == "Santa Bárbara d'Oeste"


class TestWeatherErrors:
    """Error taxonomy of POST /weather."""

    def test_method_not_allowed(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        response = client.get("/weather")

        assert response.status_code == 405
        assert response.headers["content-type"].startswith("text/plain")
        assert upstreams.requests == []

    def test_malformed_body(self, client: TestClient) -> None:
        response = client.post(
            "/weather", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Invalid request body"

    @pytest.mark.parametrize("body", [b"null", b'{"cep": null}'])
    def test_null_body_is_invalid_zipcode(
        self, client: TestClient, upstreams: FakeUpstreams, body: bytes
    ) -> None:
        response = client.post(
            "/weather", content=body, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 422
        assert response.json() == {"message": "invalid zipcode"}
        assert upstreams.requests == []

    def test_trace_method_not_allowed(
        self, client: TestClient, upstreams: FakeUpstreams, exporter: InMemorySpanExporter
    ) -> None:
        response = client.request("TRACE", "/weather")

        assert response.status_code == 405
        assert response.text == "Method not allowed"
        (span,) = exporter.get_finished_spans()
        assert span.name == "handleWeather"
        assert upstreams.requests == []

    @pytest.mark.parametrize("cep", ["1234", "abcdefgh", "01310-100", ""])
    def test_invalid_zipcode(self, client: TestClient, upstreams: FakeUpstreams, cep: str) -> None:
        response = client.post("/weather", json={"cep": cep})

        assert response.status_code == 422
        assert response.json() == {"message": "invalid zipcode"}
        assert upstreams.requests == []

    def test_directory_not_found(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        upstreams.set_directory(json={"erro": True})

        response = client.post("/weather", json={"cep": "99999999"})

        assert response.status_code == 404
        assert response.json() == {"message": "can not find zipcode"}
        assert upstreams.requests_to(WEATHER_HOST) == []

    def test_directory_not_found_string_flag(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        """ViaCEP sometimes sends erro as the string "true"."""
        upstreams.set_directory(json={"erro": "true"})

        response = client.post("/weather", json={"cep": "99999999"})

        assert response.status_code == 404

    @pytest.mark.parametrize("status,content", [
        (400, b'{"erro": true}'),
        (500, b"oops"),
        (200, b"<html>not json</html>"),
    ])
    def test_directory_failures_map_to_404(
        self, client: TestClient, upstreams: FakeUpstreams, status: int, content: bytes
    ) -> None:
        upstreams.set_directory(status=status, content=content)

        response = client.post("/weather", json={"cep": "01310100"})

        assert response.status_code == 404
        assert response.json() == {"message": "can not find zipcode"}

    def test_directory_transport_error(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        upstreams.directory = refuse

        response = client.post("/weather", json={"cep": "01310100"})

        assert response.status_code == 404

    def test_weather_provider_error(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        upstreams.set_weather(status=500, content=b"internal error")

        response = client.post("/weather", json={"cep": "01310100"})

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == "Failed to fetch temperature"

    def test_weather_payload_without_current(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        upstreams.set_weather(json={"error": {"code": 2006, "message": "API key is invalid."}})

        response = client.post("/weather", json={"cep": "01310100"})

        assert response.status_code == 500
        assert response.text == "Failed to fetch temperature"

    def test_weather_timeout(self, client: TestClient, upstreams: FakeUpstreams) -> None:
        def slow(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        upstreams.weather = slow

        response = client.post("/weather", json={"cep": "01310100"})

        assert response.status_code == 500


class TestWeatherSpans:
    """Span lifecycle recorded by the resolver."""

    def test_success_span_tree(self, client: TestClient, exporter: InMemorySpanExporter) -> None:
        client.post("/weather", json={"cep": "01310100"})

        spans = spans_by_name(exporter)
        (handler,) = spans["handleWeather"]
        (city,) = spans["fetchCityFromCEP"]
        (temperature,) = spans["fetchTemperature"]

        assert handler.attributes["cep"] == "01310100"
        assert city.parent.span_id == handler.context.span_id
        assert temperature.parent.span_id == handler.context.span_id
        assert city.end_time <= temperature.start_time
        assert handler.start_time <= city.start_time
        assert temperature.end_time <= handler.end_time
        assert city.attributes["city"] == "São Paulo"
        assert temperature.attributes["tempC"] == 25.0
        assert handler.status.status_code is not StatusCode.ERROR
        assert handler.resource.attributes["service.name"] == "service-b"

    def test_one_handler_span_per_request(self, client: TestClient, exporter: InMemorySpanExporter) -> None:
        client.post("/weather", json={"cep": "01310100"})
        client.post("/weather", json={"cep": "1234"})
        client.get("/weather")

        assert len(spans_by_name(exporter)["handleWeather"]) == 3

    def test_root_span_without_incoming_context(
        self, client: TestClient, exporter: InMemorySpanExporter
    ) -> None:
        client.post("/weather", json={"cep": "01310100"})

        (handler,) = spans_by_name(exporter)["handleWeather"]
        assert handler.parent is None

    def test_incoming_traceparent_is_parent(
        self, client: TestClient, exporter: InMemorySpanExporter
    ) -> None:
        client.post("/weather", json={"cep": "01310100"}, headers={"traceparent": TRACEPARENT})

        (handler,) = spans_by_name(exporter)["handleWeather"]
        assert handler.context.trace_id == TRACE_ID
        assert handler.parent.span_id == PARENT_SPAN_ID
        assert handler.parent.is_remote

    def test_invalid_traceparent_starts_new_trace(
        self, client: TestClient, exporter: InMemorySpanExporter
    ) -> None:
        response = client.post(
            "/weather", json={"cep": "01310100"}, headers={"traceparent": "garbage"}
        )

        assert response.status_code == 200
        (handler,) = spans_by_name(exporter)["handleWeather"]
        assert handler.parent is None

    def test_outbound_calls_carry_trace_context(
        self, client: TestClient, upstreams: FakeUpstreams, exporter: InMemorySpanExporter
    ) -> None:
        client.post(
            "/weather",
            json={"cep": "01310100"},
            headers={"traceparent": TRACEPARENT, "baggage": "tenant=acme"},
        )

        spans = spans_by_name(exporter)
        (city_request,) = upstreams.requests_to(VIACEP_HOST)
        (weather_request,) = upstreams.requests_to(WEATHER_HOST)
        (city,) = spans["fetchCityFromCEP"]
        (temperature,) = spans["fetchTemperature"]

        for request, span in ((city_request, city), (weather_request, temperature)):
            version, trace_id, span_id, _ = request.headers["traceparent"].split("-")
            assert int(trace_id, 16) == TRACE_ID
            assert int(span_id, 16) == span.context.span_id
            assert request.headers["baggage"] == "tenant=acme"

    def test_not_found_marks_spans_as_error(
        self, client: TestClient, upstreams: FakeUpstreams, exporter: InMemorySpanExporter
    ) -> None:
        upstreams.set_directory(json={"erro": True})

        client.post("/weather", json={"cep": "99999999"})

        spans = spans_by_name(exporter)
        (handler,) = spans["handleWeather"]
        (city,) = spans["fetchCityFromCEP"]
        assert "fetchTemperature" not in spans
        assert city.status.status_code is StatusCode.ERROR
        assert any(event.name == "exception" for event in city.events)
        assert handler.status.status_code is StatusCode.ERROR
        assert handler.attributes["http.response.status_code"] == 404

    def test_weather_failure_marks_spans_as_error(
        self, client: TestClient, upstreams: FakeUpstreams, exporter: InMemorySpanExporter
    ) -> None:
        upstreams.set_weather(status=503, content=b"")

        client.post("/weather", json={"cep": "01310100"})

        spans = spans_by_name(exporter)
        (temperature,) = spans["fetchTemperature"]
        (city,) = spans["fetchCityFromCEP"]
        assert temperature.status.status_code is StatusCode.ERROR
        assert "503" in temperature.status.description
        assert city.status.status_code is not StatusCode.ERROR
        assert spans["handleWeather"][0].attributes["http.response.status_code"] == 500

    def test_invalid_zipcode_records_cep_attribute(
        self, client: TestClient, exporter: InMemorySpanExporter
    ) -> None:
        client.post("/weather", json={"cep": "abc"})

        (handler,) = spans_by_name(exporter)["handleWeather"]
        assert handler.attributes["cep"] == "abc"
        assert handler.status.status_code is StatusCode.ERROR
        assert len(exporter.get_finished_spans()) == 1


class TestHealth:
    def test_health(self, client: TestClient, exporter: InMemorySpanExporter) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "service-b"}
        assert exporter.get_finished_spans() == ()
