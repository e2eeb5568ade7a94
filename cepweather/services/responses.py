"""
Response builders shared by the edge and resolver handlers.

Plain-text bodies are used for protocol and upstream failures; the JSON
`{"message": ...}` envelope is reserved for the two classified
application failures (invalid zipcode, zipcode not found).
"""

from __future__ import annotations

from fastapi.responses import JSONResponse, PlainTextResponse, Response
from opentelemetry.trace import Span, Status, StatusCode

from cepweather.core.errors import (
    CEPWeatherError,
    ClientDisconnected,
    InvalidZipcodeError,
    MalformedBodyError,
    MethodNotAllowedError,
    ZipcodeNotFoundError,
)
from cepweather.core.models import ErrorResponse

# Every method is routed to the handler so the span starts before the method check.
ROUTE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "TRACE", "CONNECT"]

INVALID_ZIPCODE = "invalid zipcode"
ZIPCODE_NOT_FOUND = "can not find zipcode"


def plain_text(message: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code)


def json_message(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(ErrorResponse(message=message).model_dump(), status_code=status_code)


def error_response(error: CEPWeatherError, upstream_message: str) -> Response:
    """Map a pipeline error to its single HTTP response.

    Args:
        error: The classified error
        upstream_message: Plain-text body used for upstream failures (500)

    Returns:
        The response to send to the client
    """
    if isinstance(error, MethodNotAllowedError):
        return plain_text("Method not allowed", 405)
    if isinstance(error, MalformedBodyError):
        return plain_text("Invalid request body", 400)
    if isinstance(error, InvalidZipcodeError):
        return json_message(INVALID_ZIPCODE, 422)
    if isinstance(error, ZipcodeNotFoundError):
        return json_message(ZIPCODE_NOT_FOUND, 404)
    if isinstance(error, ClientDisconnected):
        # Nobody is listening; the status only shows up in access logs.
        return Response(status_code=error.status_code)
    return plain_text(upstream_message, 500)


def mark_error(span: Span, error: BaseException, status_code: int) -> None:
    """Record a handled failure on the handler span."""
    span.record_exception(error)
    span.set_status(Status(StatusCode.ERROR, str(error)))
    span.set_attribute("http.response.status_code", status_code)
