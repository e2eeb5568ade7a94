"""Outbound clients for the postal-code directory and weather provider."""

from cepweather.clients.directory import fetch_city
from cepweather.clients.weather import fetch_temperature

__all__ = [
    "fetch_city",
    "fetch_temperature",
]
