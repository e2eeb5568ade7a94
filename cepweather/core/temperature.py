"""Temperature conversions from Celsius."""

from __future__ import annotations

# Integer offset kept for compatibility with existing clients (not 273.15).
KELVIN_OFFSET = 273


def celsius_to_fahrenheit(temp_c: float) -> float:
    return temp_c * 1.8 + 32


def celsius_to_kelvin(temp_c: float) -> float:
    return temp_c + KELVIN_OFFSET
