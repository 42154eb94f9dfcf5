"""Error models for API responses."""

import enum
from typing import Any, Literal, Optional
from pydantic import BaseModel


class ErrorType(str, enum.Enum):
    INVALID_REQUEST = "invalid_request_error"
    AUTHENTICATION = "authentication_error"
    CONFIGURATION = "configuration_error"
    PERMISSION = "permission_error"
    NOT_FOUND = "not_found_error"
    TIMEOUT = "timeout_error"
    RATE_LIMIT = "rate_limit_error"
    NETWORK = "network_error"
    CONTENT_REJECTED = "content_rejected_error"
    UPSTREAM = "upstream_error"
    API_ERROR = "api_error"


class ErrorDetail(BaseModel):
    type: ErrorType
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    type: Literal["error"] = "error"
    error: ErrorDetail
