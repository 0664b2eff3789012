"""Logging utilities for the gateway bridge.

Provides centralized JSON logging configuration and sanitization of the
request/response metadata that gets logged. Bodies are never logged, only
their sizes.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

from pythonjsonlogger import json as jsonlogger

# Sensitive keys to filter (case-insensitive)
SENSITIVE_KEYS = [
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "auth",
    "token",
    "password",
    "secret",
    "credential",
    "session",
    "cookie",
]

# Sensitive header prefixes (case-insensitive)
SENSITIVE_HEADER_PREFIXES = [
    "x-api-key",
    "x-amz-security-token",
    "x-auth",
    "x-token",
    "x-secret",
    "authorization",
    "proxy-authorization",
    "cookie",
    "set-cookie",
]

# LogRecord attributes that are not user-supplied extras
_RESERVED_ATTRS = frozenset(
    {
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "message", "pathname", "process", "processName",
        "relativeCreated", "thread", "threadName", "exc_info",
        "exc_text", "stack_info", "asctime", "datefmt", "taskName",
    }
)


def configure_json_logging(level: str = "INFO", pretty: bool = False) -> None:
    """Configure ALL loggers to use JSON format.

    Sets up the root logger with JSON formatting so every child logger
    inherits it.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        pretty: If True, use pretty-printed JSON (for local development).
                If False, use compact JSON (for CloudWatch).
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    handler = logging.StreamHandler()
    handler.setLevel(log_level)

    if pretty:
        formatter = _PrettyJsonFormatter()
    else:
        formatter = jsonlogger.JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            timestamp=True,
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


class _PrettyJsonFormatter(logging.Formatter):
    """Pretty JSON formatter for local development.

    Formats logs as indented JSON and truncates long string values.
    """

    def __init__(self, max_string_length: int = 500):
        super().__init__()
        self.max_string_length = max_string_length

    def _truncate_value(self, value: Any) -> Any:
        if isinstance(value, str) and len(value) > self.max_string_length:
            return value[: self.max_string_length] + f"... (truncated, {len(value)} chars)"
        if isinstance(value, dict):
            return {k: self._truncate_value(v) for k, v in value.items()}
        return value

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as pretty JSON."""
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = self._truncate_value(value)

        if record.exc_info:
            log_data["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(log_data, indent=2, ensure_ascii=False, default=str)


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return any(sensitive_key in key_lower for sensitive_key in SENSITIVE_KEYS)


def sanitize_headers(headers: Optional[Mapping[str, str]]) -> Dict[str, str]:
    """Sanitize HTTP headers by redacting sensitive values.

    Args:
        headers: HTTP headers mapping (may be None)

    Returns:
        Sanitized headers dictionary
    """
    sanitized = {}
    for key, value in (headers or {}).items():
        key_lower = key.lower()
        if any(
            key_lower.startswith(prefix) for prefix in SENSITIVE_HEADER_PREFIXES
        ) or _is_sensitive_key(key):
            sanitized[key] = "[REDACTED]"
        else:
            sanitized[key] = value
    return sanitized


def format_request_log(
    request_id: str,
    http_method: str,
    request_path: str,
    headers: Optional[Mapping[str, str]],
    body_bytes: int,
    is_base64_encoded: bool = False,
) -> Dict[str, Any]:
    """Format structured request log entry.

    Args:
        request_id: Request ID (from the Lambda context, if any)
        http_method: HTTP method (GET, POST, etc.)
        request_path: Request path
        headers: Request headers
        body_bytes: Length of the request body as received
        is_base64_encoded: Whether the event body was base64-encoded

    Returns:
        Dictionary with structured log data
    """
    return {
        "request_id": request_id,
        "http_method": http_method,
        "request_path": request_path,
        "request_headers": sanitize_headers(headers),
        "request_body_bytes": body_bytes,
        "request_base64_encoded": is_base64_encoded,
    }


def format_response_log(
    request_id: str,
    status_code: int,
    headers: Optional[Mapping[str, str]],
    body_bytes: int,
    is_base64_encoded: bool,
    duration_ms: float,
) -> Dict[str, Any]:
    """Format structured response log entry.

    Args:
        request_id: Request ID
        status_code: HTTP status code
        headers: Response headers
        body_bytes: Length of the gateway response body
        is_base64_encoded: Whether the response body was base64-encoded
        duration_ms: Processing duration in milliseconds

    Returns:
        Dictionary with structured log data
    """
    return {
        "request_id": request_id,
        "response_status": status_code,
        "response_headers": sanitize_headers(headers),
        "response_body_bytes": body_bytes,
        "response_base64_encoded": is_base64_encoded,
        "duration_ms": round(duration_ms, 2),
    }
