"""Error handling utilities: map exceptions to structured error responses."""

import json
from typing import Any, Optional, Tuple

import httpx
import openai
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from models import ErrorType, ErrorDetail, ErrorResponse
from .exceptions import RelayError


def get_error_details_from_exc(
    exc: Exception,
) -> Tuple[ErrorType, str, int, Optional[Any]]:
    """Maps caught exceptions to error type, user-facing message, status code and details."""

    if isinstance(exc, RelayError):
        return exc.error_type, exc.message, exc.status_code, exc.details

    if isinstance(exc, ValidationError):
        details = [
            {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
            for err in exc.errors()
        ]
        return ErrorType.INVALID_REQUEST, "Invalid request body", 400, details

    if isinstance(exc, json.JSONDecodeError):
        return ErrorType.INVALID_REQUEST, "Request body is not valid JSON", 400, str(exc)

    # Provider errors that escaped the retry policy's classification
    if isinstance(exc, openai.APIError):
        if isinstance(exc, openai.AuthenticationError):
            return ErrorType.AUTHENTICATION, "Invalid API key. Check GROQ_API_KEY in the .env file.", 401, str(exc)
        elif isinstance(exc, openai.RateLimitError):
            return ErrorType.RATE_LIMIT, "The AI provider is rate limiting requests. Try again later.", 429, str(exc)
        elif isinstance(exc, openai.APITimeoutError):
            return ErrorType.TIMEOUT, "The AI provider took too long to respond.", 504, str(exc)
        elif isinstance(exc, openai.APIConnectionError):
            return ErrorType.NETWORK, "Could not connect to the AI provider.", 502, str(exc)
        return ErrorType.API_ERROR, "Failed to get a response from the AI", 500, str(exc)

    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code == 401:
            return ErrorType.AUTHENTICATION, str(exc), 401, None
        elif status_code == 403:
            return ErrorType.PERMISSION, str(exc), 403, None
        elif status_code == 404:
            return ErrorType.NOT_FOUND, str(exc), 404, None
        elif status_code == 429:
            return ErrorType.RATE_LIMIT, str(exc), 429, None
        return ErrorType.UPSTREAM, str(exc), 502, None

    # Default handling for other exceptions
    return ErrorType.API_ERROR, "Internal server error", 500, str(exc)


def build_error_payload(error_type: ErrorType, message: str, details: Any = None) -> dict:
    """Structured error body shared by JSON responses and SSE error events."""
    error_response = ErrorResponse(
        error=ErrorDetail(type=error_type, message=message, details=details)
    )
    return error_response.model_dump(mode="json", exclude_none=True)


def build_error_response(
    error_type: ErrorType,
    message: str,
    status_code: int,
    details: Any = None,
) -> JSONResponse:
    """Creates a JSONResponse with the structured error body."""
    return JSONResponse(
        status_code=status_code,
        content=build_error_payload(error_type, message, details),
    )
