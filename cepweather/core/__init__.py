"""
cepweather.core - Domain models, validation and conversions.

Example:
    >>> from cepweather.core import is_valid_cep, celsius_to_fahrenheit
    >>> is_valid_cep("01310100")
    True
    >>> celsius_to_fahrenheit(25.0)
    77.0
"""

from cepweather.core.cep import decode_cep_request, is_valid_cep, validate_cep
from cepweather.core.errors import (
    CEPWeatherError,
    ClientDisconnected,
    InvalidZipcodeError,
    MalformedBodyError,
    MethodNotAllowedError,
    TemperatureFetchError,
    TracerInitError,
    UpstreamUnavailableError,
    ZipcodeNotFoundError,
)
from cepweather.core.models import (
    CEPRequest,
    DirectoryResult,
    ErrorResponse,
    WeatherResponse,
    WeatherSample,
)
from cepweather.core.temperature import celsius_to_fahrenheit, celsius_to_kelvin

__all__ = [
    "decode_cep_request",
    "is_valid_cep",
    "validate_cep",
    "CEPWeatherError",
    "ClientDisconnected",
    "InvalidZipcodeError",
    "MalformedBodyError",
    "MethodNotAllowedError",
    "TemperatureFetchError",
    "TracerInitError",
    "UpstreamUnavailableError",
    "ZipcodeNotFoundError",
    "CEPRequest",
    "DirectoryResult",
    "ErrorResponse",
    "WeatherResponse",
    "WeatherSample",
    "celsius_to_fahrenheit",
    "celsius_to_kelvin",
]
