"""
Process configuration for the cepweather services.

All settings are read from environment variables once at startup and
passed explicitly into the application factories.

Example:
    >>> from cepweather.config import Settings
    >>> settings = Settings.from_env()
    >>> settings.resolver_url
    'http://service-b:8081/weather'
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_WEATHER_API_KEY = "YOUR_DEFAULT_API_KEY"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _get_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}")


def _get_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class Settings:
    """Runtime settings shared by the edge and resolver services.

    Attributes:
        edge_service_name: service.name resource attribute of service A
        resolver_service_name: service.name resource attribute of service B
        edge_host: Listen address of service A
        edge_port: Listen port of service A
        resolver_host: Listen address of service B
        resolver_port: Listen port of service B
        resolver_url: URL service A forwards valid requests to
        zipkin_endpoint: Span collector endpoint
        viacep_base_url: Base URL of the postal-code directory
        weather_api_url: Current-conditions URL of the weather provider
        weather_api_key: Weather provider key (placeholder when unset)
        http_timeout_seconds: Budget for each outbound HTTP call
        log_level: Root logging level name
        instrument_httpx: Enable OpenTelemetry httpx auto-instrumentation
        instrument_logging: Inject trace ids into log records
    """
    edge_service_name: str = "service-a"
    resolver_service_name: str = "service-b"
    edge_host: str = "0.0.0.0"
    edge_port: int = 8080
    resolver_host: str = "0.0.0.0"
    resolver_port: int = 8081
    resolver_url: str = "http://service-b:8081/weather"
    zipkin_endpoint: str = "http://zipkin:9411/api/v2/spans"
    viacep_base_url: str = "https://viacep.com.br/ws"
    weather_api_url: str = "http://api.weatherapi.com/v1/current.json"
    weather_api_key: str = DEFAULT_WEATHER_API_KEY
    http_timeout_seconds: float = 5.0
    log_level: str = "INFO"
    instrument_httpx: bool = False
    instrument_logging: bool = False

    @property
    def uses_default_api_key(self) -> bool:
        return self.weather_api_key == DEFAULT_WEATHER_API_KEY

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            env: Mapping to read from (defaults to os.environ)

        Returns:
            Populated Settings instance

        Raises:
            ValueError: If a numeric variable cannot be parsed
        """
        if env is None:
            env = os.environ
        defaults = cls()
        return cls(
            edge_service_name=env.get("EDGE_SERVICE_NAME") or defaults.edge_service_name,
            resolver_service_name=(
                env.get("RESOLVER_SERVICE_NAME") or defaults.resolver_service_name
            ),
            edge_host=env.get("EDGE_HOST") or defaults.edge_host,
            edge_port=_get_int(env, "EDGE_PORT", defaults.edge_port),
            resolver_host=env.get("RESOLVER_HOST") or defaults.resolver_host,
            resolver_port=_get_int(env, "RESOLVER_PORT", defaults.resolver_port),
            resolver_url=env.get("RESOLVER_URL") or defaults.resolver_url,
            zipkin_endpoint=env.get("ZIPKIN_ENDPOINT") or defaults.zipkin_endpoint,
            viacep_base_url=env.get("VIACEP_BASE_URL") or defaults.viacep_base_url,
            weather_api_url=env.get("WEATHER_API_URL") or defaults.weather_api_url,
            weather_api_key=env.get("WEATHER_API_KEY") or DEFAULT_WEATHER_API_KEY,
            http_timeout_seconds=_get_float(
                env, "HTTP_TIMEOUT_SECONDS", defaults.http_timeout_seconds
            ),
            log_level=(env.get("LOG_LEVEL") or defaults.log_level).upper(),
            instrument_httpx=_get_bool(env, "OTEL_INSTRUMENT_HTTPX", False),
            instrument_logging=_get_bool(env, "OTEL_INSTRUMENT_LOGGING", False),
        )
