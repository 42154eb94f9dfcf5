"""
Utility modules for the Chat Relay.

This package contains:
- Logging utilities with colored console output and JSON formatting
"""

# Re-export commonly used logging functions
from .logging import (
    LogRecord, LogEvent, LogError,
    ColoredConsoleFormatter, JSONFormatter, UvicornAccessFormatter,
    init_logger, debug, info, warning, error, critical,
    mask_sensitive_data, mask_sensitive_string,
)

__all__ = [
    # Logging utilities
    "LogRecord", "LogEvent", "LogError",
    "ColoredConsoleFormatter", "JSONFormatter", "UvicornAccessFormatter",
    "init_logger", "debug", "info", "warning", "error", "critical",
    "mask_sensitive_data", "mask_sensitive_string",
]
