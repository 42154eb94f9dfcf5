"""Logging handlers and utility functions."""

import enum
import logging
import traceback
from typing import Optional

from .formatters import LogError, LogRecord


class LogEvent(enum.Enum):
    # Core request flow events
    REQUEST_RECEIVED = "request_received"
    REQUEST_COMPLETED = "request_completed"
    REQUEST_FAILURE = "request_failure"
    HTTP_REQUEST = "http_request"

    # Completion provider events
    COMPLETION_REQUEST = "completion_request"
    COMPLETION_STREAM_OPENED = "completion_stream_opened"
    COMPLETION_RETRY_SCHEDULED = "completion_retry_scheduled"
    COMPLETION_RETRIES_EXHAUSTED = "completion_retries_exhausted"
    COMPLETION_FAILED = "completion_failed"
    COMPLETION_API_KEY_MISSING = "completion_api_key_missing"

    # Queue events
    QUEUE_ENTRY_SUBMITTED = "queue_entry_submitted"
    QUEUE_ENTRY_STARTED = "queue_entry_started"
    QUEUE_ENTRY_COMPLETED = "queue_entry_completed"
    QUEUE_ENTRY_FAILED = "queue_entry_failed"
    QUEUE_DRAINED = "queue_drained"

    # Cache events
    CACHE_HIT = "cache_hit"
    CACHE_MISS = "cache_miss"
    CACHE_EXPIRED = "cache_expired"
    CACHE_STORED = "cache_stored"

    # Streaming events
    STREAMING_COMPLETED = "streaming_completed"
    ERROR_SENT_TO_CLIENT = "error_sent_to_client"

    # Realtime chat events
    CLIENT_CONNECTED = "client_connected"
    CLIENT_DISCONNECTED = "client_disconnected"
    CLIENT_DISCONNECTED_DURING_SEND = "client_disconnected_during_send"
    CLIENT_FRAME_INVALID = "client_frame_invalid"
    CLIENT_EVENT_UNKNOWN = "client_event_unknown"
    CHAT_CREATED = "chat_created"
    CHAT_SWITCHED = "chat_switched"
    CHAT_MESSAGE_ADDED = "chat_message_added"
    CHAT_TITLE_UPDATED = "chat_title_updated"
    CHAT_DELETED = "chat_deleted"
    CHAT_NOT_FOUND = "chat_not_found"

    # Page extraction events
    PAGE_FETCH_STARTED = "page_fetch_started"
    PAGE_FETCH_COMPLETED = "page_fetch_completed"
    PAGE_FETCH_FAILED = "page_fetch_failed"

    # System events
    FASTAPI_STARTUP_COMPLETE = "fastapi_startup_complete"
    FASTAPI_SHUTDOWN = "fastapi_shutdown"


# Initialize logger - will be set up when module is initialized
_logger = None


def init_logger(app_name: str = "chat-relay"):
    """Initialize the logger for this module."""
    global _logger
    _logger = logging.getLogger(app_name)


def _log(level: int, record: LogRecord, exc: Optional[Exception] = None) -> None:
    """Internal logging function."""
    if _logger is None:
        init_logger()

    if exc:
        record.error = LogError(
            name=type(exc).__name__,
            message=str(exc),
            stack_trace="".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            ),
            args=exc.args if hasattr(exc, "args") else tuple(),
        )
        if not record.message:
            record.message = str(exc) or "An unspecified error occurred"

    _logger.log(level=level, msg=record.message, extra={"log_record": record})


def debug(record: LogRecord):
    """Log a debug message."""
    _log(logging.DEBUG, record)


def info(record: LogRecord):
    """Log an info message."""
    _log(logging.INFO, record)


def warning(record: LogRecord, exc: Optional[Exception] = None):
    """Log a warning message."""
    _log(logging.WARNING, record, exc=exc)


def error(record: LogRecord, exc: Optional[Exception] = None):
    """Log an error message."""
    _log(logging.ERROR, record, exc=exc)


def critical(record: LogRecord, exc: Optional[Exception] = None):
    """Log a critical message."""
    _log(logging.CRITICAL, record, exc=exc)
