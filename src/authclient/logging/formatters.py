"""
Log formatters.

JSONFormatter emits one object per line for log shippers; ConsoleFormatter
is for people. Both pull the per-call request context from contextvars, and
both scrub credentials: a token must never reach a log sink, even when it
ends up inside an exception message.
"""

import json
import logging
import re
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

from authclient.logging.context import get_log_context

BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9\-_.~+/]+=*", re.IGNORECASE)
JWT_PATTERN = re.compile(r"eyJ[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]+\.[A-Za-z0-9_\-]*")
SECRET_QUERY_PATTERN = re.compile(
    r"([?&])(token|access|refresh|key|secret|password|auth)=[^&]*",
    re.IGNORECASE,
)
REDACTED = "[REDACTED]"


def redact(text: str) -> str:
    """Mask bearer credentials, raw JWTs and secret query parameters."""
    text = BEARER_PATTERN.sub(rf"\1{REDACTED}", text)
    text = JWT_PATTERN.sub(REDACTED, text)
    return SECRET_QUERY_PATTERN.sub(rf"\1\2={REDACTED}", text)


def json_serializer(obj: Any) -> Any:
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Path):
        return str(obj)
    return str(obj)


# Extra fields copied from LogRecords, with the type each is coerced to
# (None means copied as-is)
LOG_FIELDS: dict[str, type | None] = {
    # HTTP
    "http_url": None,
    "http_status": int,
    "duration_seconds": float,
    "timeout_seconds": float,
    # Errors
    "error_code": None,
    "error_message": None,
    "error_type": None,
    "status_code": int,
    "correlation_id": None,
    "is_network_error": bool,
    # Retry
    "attempt": int,
    "max_attempts": int,
    "retry_count": int,
    "delay_seconds": float,
    # Renewal
    "renewal_count": int,
    "waiters": int,
    # Storage / configuration
    "destination_path": None,
    "base_url": None,
    "max_concurrent": int,
    # Caller supplied
    "action": None,
}

CONTEXT_FIELDS = ("request_id", "http_method", "api_path", "tenant")


def _coerce(value: Any, kind: type | None) -> Any:
    if kind is None:
        return redact(value) if isinstance(value, str) else value
    try:
        return kind(value)
    except (TypeError, ValueError):
        return None


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Numeric extras are coerced to numbers (and dropped when they cannot be),
    string extras and the message are redacted.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": redact(record.getMessage()),
        }

        context = get_log_context()
        entry.update({name: context[name] for name in CONTEXT_FIELDS if context.get(name)})

        if record.levelno >= logging.ERROR or record.levelno == logging.DEBUG:
            entry["file"] = f"{record.filename}:{record.lineno}"

        for name, kind in LOG_FIELDS.items():
            raw = getattr(record, name, None)
            if raw is None:
                continue
            value = _coerce(raw, kind)
            if value is not None:
                entry[name] = value

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": redact(str(exc_value)),
                "stacktrace": redact(self.formatException(record.exc_info)),
            }

        return json.dumps(entry, default=json_serializer, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    `2024-01-01 12:00:00 - WARNING - authclient.http.client - [3f9c2a1b] [GET /me/] msg`

    Level names are colored only when stdout is a terminal.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._use_colors = sys.stdout.isatty()

    def _level(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname) if self._use_colors else None
        return f"{color}{record.levelname}{self.RESET}" if color else record.levelname

    def format(self, record: logging.LogRecord) -> str:
        context = get_log_context()
        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            self._level(record),
            record.name,
        ]

        tags = ""
        if context.get("request_id"):
            tags += f"[{context['request_id'][:8]}] "
        if context.get("http_method") and context.get("api_path"):
            tags += f"[{context['http_method']} {context['api_path']}] "

        line = " - ".join(parts) + f" - {tags}{redact(record.getMessage())}"
        if record.exc_info:
            line += "\n" + redact(self.formatException(record.exc_info))
        return line


__all__ = ["JSONFormatter", "ConsoleFormatter", "json_serializer", "redact"]
