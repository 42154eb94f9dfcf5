"""Exception hierarchy surfaced to API callers.

Every failure that reaches a request boundary is a ``RelayError`` (or is
mapped to one by ``errors.error_handling``). Each subclass fixes the error
type, HTTP status and the user-facing message shown by the client.
"""

from typing import Any, Optional

from models import ErrorType


class RelayError(Exception):
    error_type: ErrorType = ErrorType.API_ERROR
    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None, *, status_code: Optional[int] = None, details: Any = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class InvalidRequestError(RelayError):
    error_type = ErrorType.INVALID_REQUEST
    status_code = 400
    default_message = "Invalid request"


class InvalidURLError(InvalidRequestError):
    default_message = "Invalid URL format"


class ConfigurationError(RelayError):
    error_type = ErrorType.CONFIGURATION
    status_code = 503
    default_message = (
        "API key is not configured. Add GROQ_API_KEY to the .env file and restart the server."
    )


class ChatNotFoundError(RelayError):
    error_type = ErrorType.NOT_FOUND
    status_code = 404

    def __init__(self, chat_id: str):
        self.chat_id = chat_id
        super().__init__(f"Chat not found: {chat_id}")


class ContentRejectedError(RelayError):
    error_type = ErrorType.CONTENT_REJECTED
    status_code = 400
    default_message = "Could not extract meaningful text from URL"


# Page fetch failures, one class per user-visible subtype

class PageFetchError(RelayError):
    error_type = ErrorType.NETWORK
    status_code = 500
    default_message = "Could not load the URL content. Try another link."


class SiteNotFoundError(PageFetchError):
    status_code = 404
    default_message = "Site not found. Check that the URL is correct."


class FetchTimeoutError(PageFetchError):
    error_type = ErrorType.TIMEOUT
    status_code = 408
    default_message = "Request timed out. The site took too long to respond."


class SiteUnreachableError(PageFetchError):
    status_code = 503
    default_message = "Could not connect to the site."


class AccessDeniedError(PageFetchError):
    error_type = ErrorType.PERMISSION
    status_code = 403
    default_message = "Access denied. The site blocks automated requests."


class PageNotFoundError(PageFetchError):
    error_type = ErrorType.NOT_FOUND
    status_code = 404
    default_message = "Page not found (404). Check that the link is correct."


class UpstreamSiteError(PageFetchError):
    error_type = ErrorType.UPSTREAM
    status_code = 502
    default_message = "The site's server returned an error. Try again later."
