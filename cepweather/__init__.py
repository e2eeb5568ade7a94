"""
cepweather - CEP to temperature pipeline with end-to-end tracing.

Two FastAPI services share one OpenTelemetry tracing runtime:

- edge (A): POST /cep validates a Brazilian postal code and forwards it.
- resolver (B): POST /weather resolves the CEP to a city via ViaCEP and
  returns the current temperature in Celsius, Fahrenheit and Kelvin.

Example:
    >>> from cepweather import Settings, setup_tracing, create_resolver_app
    >>> settings = Settings.from_env()
    >>> runtime = setup_tracing(settings.resolver_service_name, settings.zipkin_endpoint)
    >>> app = create_resolver_app(settings, runtime)
"""

__version__ = "0.1.0"

from cepweather.config import Settings
from cepweather.tracing import TracingRuntime, setup_tracing
from cepweather.services import create_edge_app, create_resolver_app

__all__ = [
    "Settings",
    "TracingRuntime",
    "setup_tracing",
    "create_edge_app",
    "create_resolver_app",
]
