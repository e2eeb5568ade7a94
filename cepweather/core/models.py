"""
Request, response and upstream payload models.

Pydantic models are used for both the public JSON envelopes and for
decoding the postal-code directory and weather provider replies.
"""

from __future__ import annotations

from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator


class CEPRequest(BaseModel):
    """Inbound body of POST /cep and POST /weather.

    Attributes:
        cep: Postal code as sent by the client (validated separately)
    """
    model_config = ConfigDict(extra="ignore")

    cep: str = ""

    @model_validator(mode="before")
    @classmethod
    def _null_body(cls, data: Any) -> Any:
        # A JSON null body decodes to an empty request
        return {} if data is None else data

    @field_validator("cep", mode="before")
    @classmethod
    def _null_cep(cls, value: Any) -> Any:
        return "" if value is None else value


class WeatherResponse(BaseModel):
    """Successful resolver reply.

    Attributes:
        city: City name as reported by the directory
        temp_C: Temperature in Celsius
        temp_F: Temperature in Fahrenheit
        temp_K: Temperature in Kelvin
    """
    city: str
    temp_C: float
    temp_F: float
    temp_K: float

    @field_serializer("temp_C", "temp_F", "temp_K")
    def _whole_numbers(self, value: float) -> Union[int, float]:
        # 25.0 is written as 25
        return int(value) if value.is_integer() else value


class ErrorResponse(BaseModel):
    """JSON error envelope for classified application failures."""
    message: str


class DirectoryResult(BaseModel):
    """Subset of the ViaCEP reply used to resolve a city."""
    model_config = ConfigDict(extra="ignore")

    localidade: str = ""
    erro: bool = False


class CurrentConditions(BaseModel):
    model_config = ConfigDict(extra="ignore")

    temp_c: float


class WeatherSample(BaseModel):
    """Subset of the weather provider's current.json reply."""
    model_config = ConfigDict(extra="ignore")

    current: CurrentConditions = Field(...)

    @property
    def temp_c(self) -> float:
        return self.current.temp_c
