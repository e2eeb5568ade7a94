"""
CEP validation and request body decoding.

Example:
    >>> from cepweather.core.cep import is_valid_cep
    >>> is_valid_cep("01310100")
    True
    >>> is_valid_cep("01310-100")
    False
"""

from __future__ import annotations

import re

from pydantic import ValidationError

from cepweather.core.errors import InvalidZipcodeError, MalformedBodyError
from cepweather.core.models import CEPRequest

# ASCII digits only; \d would also accept other Unicode decimal digits.
_CEP_PATTERN = re.compile(r"[0-9]{8}")


def is_valid_cep(cep: str) -> bool:
    """Return True when cep is exactly eight decimal digits."""
    return isinstance(cep, str) and _CEP_PATTERN.fullmatch(cep) is not None


def validate_cep(cep: str) -> str:
    """Return cep unchanged or raise InvalidZipcodeError."""
    if not is_valid_cep(cep):
        raise InvalidZipcodeError("invalid zipcode")
    return cep


def decode_cep_request(body: bytes) -> CEPRequest:
    """Decode a raw JSON body into a CEPRequest.

    Args:
        body: Raw request body bytes

    Returns:
        Decoded request; a missing "cep" key yields an empty string

    Raises:
        MalformedBodyError: If the body is not a JSON object with a string "cep"
    """
    try:
        return CEPRequest.model_validate_json(body)
    except ValidationError as exc:
        raise MalformedBodyError("Invalid request body") from exc
