"""
Error taxonomy for the CEP weather pipeline.

Each error kind maps to exactly one HTTP response in the service
handlers. Client code raises these with the underlying cause chained.
"""

from __future__ import annotations


class CEPWeatherError(Exception):
    """Base class for all pipeline errors."""

    status_code = 500


class MethodNotAllowedError(CEPWeatherError):
    """Raised when an endpoint is called with a method other than POST."""

    status_code = 405


class MalformedBodyError(CEPWeatherError):
    """Raised when the request body cannot be decoded."""

    status_code = 400


class InvalidZipcodeError(CEPWeatherError):
    """Raised when a CEP is not exactly eight decimal digits."""

    status_code = 422


class ZipcodeNotFoundError(CEPWeatherError):
    """Raised when the postal-code directory cannot resolve a CEP."""

    status_code = 404


class UpstreamUnavailableError(CEPWeatherError):
    """Raised on transport failures or unexpected replies from a dependency."""

    status_code = 500


class TemperatureFetchError(UpstreamUnavailableError):
    """Raised when the weather provider cannot supply a temperature."""


class ClientDisconnected(CEPWeatherError):
    """Raised when the inbound client goes away mid-request."""

    status_code = 499


class TracerInitError(CEPWeatherError):
    """Raised when the tracing runtime cannot be constructed."""
