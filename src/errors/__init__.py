"""Error taxonomy and mapping to structured API responses."""

from .exceptions import (
    RelayError,
    InvalidRequestError,
    InvalidURLError,
    ConfigurationError,
    ChatNotFoundError,
    ContentRejectedError,
    PageFetchError,
    SiteNotFoundError,
    FetchTimeoutError,
    SiteUnreachableError,
    AccessDeniedError,
    PageNotFoundError,
    UpstreamSiteError
)

from .error_handling import (
    get_error_details_from_exc,
    build_error_payload,
    build_error_response
)

__all__ = [
    "RelayError",
    "InvalidRequestError",
    "InvalidURLError",
    "ConfigurationError",
    "ChatNotFoundError",
    "ContentRejectedError",
    "PageFetchError",
    "SiteNotFoundError",
    "FetchTimeoutError",
    "SiteUnreachableError",
    "AccessDeniedError",
    "PageNotFoundError",
    "UpstreamSiteError",
    "get_error_details_from_exc",
    "build_error_payload",
    "build_error_response"
]
