"""Pydantic models for API requests and responses."""

from .messages import (
    ChatTurn,
    CompletionRequest,
    ChatRequest
)

from .chats import (
    Chat,
    ChatMessage
)

from .extraction import (
    FetchUrlRequest,
    ExtractedPage,
    ShortenRequest,
    ShortenResponse
)

from .errors import (
    ErrorType,
    ErrorDetail,
    ErrorResponse
)

__all__ = [
    # Completion
    "ChatTurn",
    "CompletionRequest",
    "ChatRequest",

    # Chats
    "Chat",
    "ChatMessage",

    # Extraction
    "FetchUrlRequest",
    "ExtractedPage",
    "ShortenRequest",
    "ShortenResponse",

    # Errors
    "ErrorType",
    "ErrorDetail",
    "ErrorResponse"
]
