"""
Request handling shared by the API routers: body parsing and the
log-then-respond path every error takes on its way to the client.
"""

import json
from typing import Any, Optional, Type, TypeVar

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from errors import get_error_details_from_exc, build_error_response
from utils import LogRecord, LogEvent, error, warning

ModelT = TypeVar("ModelT", bound=BaseModel)


class RequestHandler:

    def __init__(self, settings: Any):
        self.settings = settings

    async def parse_body(self, request: Request, model: Type[ModelT]) -> ModelT:
        """Decode the JSON body and validate it.

        Raises ``json.JSONDecodeError`` or ``pydantic.ValidationError``; both
        are reported as 400 invalid request errors.
        """
        raw_body = await request.body()
        parsed_body = json.loads(raw_body.decode("utf-8", errors="ignore") or "{}")
        if not isinstance(parsed_body, dict):
            parsed_body = {}
        return model.model_validate(parsed_body)

    async def log_and_return_error_response(
        self,
        request: Request,
        exc: Exception,
        request_id: str,
        status_code: Optional[int] = None,
    ) -> JSONResponse:
        """Log error and return formatted error response."""
        error_type, message, mapped_status, details = get_error_details_from_exc(exc)
        status_code = status_code or mapped_status

        record = LogRecord(
            event=LogEvent.REQUEST_FAILURE.value,
            message=f"{request.method} {request.url.path} failed: {message}",
            request_id=request_id,
            data={"status_code": status_code, "error_type": error_type.value},
        )
        # Client mistakes do not need a stack trace
        if status_code < 500:
            warning(record)
        else:
            error(record, exc=exc)

        return build_error_response(error_type, message, status_code, details)
