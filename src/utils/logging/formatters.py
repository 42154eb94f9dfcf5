"""Custom logging formatters."""

import dataclasses
import json
import logging
import re
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple


@dataclasses.dataclass
class LogError:
    name: str
    message: str
    stack_trace: Optional[str] = None
    args: Optional[Tuple[Any, ...]] = None


@dataclasses.dataclass
class LogRecord:
    event: str
    message: str
    request_id: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[LogError] = None


def mask_sensitive_data(data: Any, mask_char: str = "*") -> Any:
    """Recursively mask sensitive data in dictionaries, lists, and strings."""
    if isinstance(data, dict):
        return {key: mask_sensitive_data(value, mask_char) for key, value in data.items()}
    elif isinstance(data, list):
        return [mask_sensitive_data(item, mask_char) for item in data]
    elif isinstance(data, str):
        return mask_sensitive_string(data, mask_char)
    else:
        return data


def mask_sensitive_string(text: str, mask_char: str = "*") -> str:
    """Mask sensitive information in strings like API keys, tokens, etc."""
    if not isinstance(text, str):
        return text

    patterns = [
        # Provider API keys (OpenAI / Groq style)
        (r'((?:sk|gsk)_?-?[a-zA-Z0-9-_]{20,})', lambda m: m.group(1)[:8] + mask_char * 10),
        (r'(Bearer\s+[a-zA-Z0-9-_\.]{20,})', lambda m: m.group(1)[:15] + mask_char * 10),

        # Authorization headers
        (r'("?[Aa]uthorization"?\s*:\s*"?)([^"\s,}]+)', lambda m: m.group(1) + mask_char * 10),

        # Common sensitive field patterns in JSON
        (r'("(?:password|secret|token|api_key)"\s*:\s*")([^"]+)', lambda m: m.group(1) + mask_char * 8),
    ]

    masked_text = text
    for pattern, replacement in patterns:
        masked_text = re.sub(pattern, replacement, masked_text, flags=re.IGNORECASE)

    return masked_text


class ColoredConsoleFormatter(logging.Formatter):
    """Console formatter with color support and simplified output for CLI."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[95m', # Magenta
    }

    RESET = '\033[0m'

    # Toggled from settings.log_color at startup
    use_colors: bool = True

    def format(self, record: logging.LogRecord) -> str:
        log_dict = self._get_simplified_log_dict(record)

        # Only use colors if TTY output is available
        use_colors = (
            self.use_colors
            and hasattr(sys.stdout, 'isatty')
            and sys.stdout.isatty()
        )

        formatted_json = json.dumps(log_dict, ensure_ascii=False)
        if use_colors:
            color = self.COLORS.get(record.levelname, '')
            return f"{color}{formatted_json}{self.RESET}"
        return formatted_json

    def _get_simplified_log_dict(self, record: logging.LogRecord) -> dict:
        """Extract simplified log dictionary for console output."""
        log_payload = getattr(record, "log_record", None)

        if isinstance(log_payload, LogRecord):
            # Truncate very long messages for console output
            message = mask_sensitive_string(log_payload.message)
            if len(message) > 200:
                message = message[:200] + "..."

            simplified = {
                "time": datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S"),
                "level": record.levelname,
                "event": log_payload.event,
                "message": message
            }

            if log_payload.request_id:
                simplified["req_id"] = log_payload.request_id[:8]

            if log_payload.error and record.levelname in ['ERROR', 'WARNING', 'CRITICAL']:
                simplified["error"] = log_payload.error.name
                if log_payload.error.message != log_payload.message:
                    simplified["error_msg"] = mask_sensitive_string(log_payload.error.message)[:100]

            # Only a handful of fields are useful on the console
            if log_payload.data and record.levelname in ['WARNING', 'ERROR', 'CRITICAL']:
                essential_fields = ['status_code', 'error_type', 'attempt', 'chat_id']
                for field in essential_fields:
                    if field in log_payload.data:
                        simplified[field] = mask_sensitive_data(log_payload.data[field])

            return simplified

        return {
            "time": datetime.fromtimestamp(record.created, timezone.utc).strftime("%H:%M:%S"),
            "level": record.levelname,
            "message": mask_sensitive_string(record.getMessage())
        }


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        header = {
            "timestamp": datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
        }
        log_payload = getattr(record, "log_record", None)
        if isinstance(log_payload, LogRecord):
            header["detail"] = mask_sensitive_data(dataclasses.asdict(log_payload))
        else:
            header["message"] = mask_sensitive_string(record.getMessage())
            if record.exc_info:
                exc_type, exc_value, exc_tb = record.exc_info
                header["error"] = {
                    "name": exc_type.__name__ if exc_type else "UnknownError",
                    "message": mask_sensitive_string(str(exc_value)),
                    "stack_trace": "".join(
                        traceback.format_exception(exc_type, exc_value, exc_tb)
                    ),
                    "args": exc_value.args if hasattr(exc_value, "args") else [],
                }
        return json.dumps(header, ensure_ascii=False, default=str)


class UvicornAccessFormatter(logging.Formatter):
    """Formatter for uvicorn access logs so they sit quietly next to application logs."""

    INFO_GRAY = '\033[90m'
    RESET = '\033[0m'

    def __init__(self):
        super().__init__(fmt="%(levelname)s:     %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        formatted_message = super().format(record)

        use_colors = (
            hasattr(sys, 'stdout')
            and hasattr(sys.stdout, 'isatty')
            and sys.stdout.isatty()
        )

        if use_colors:
            return f"{self.INFO_GRAY}{formatted_message}{self.RESET}"
        return formatted_message
