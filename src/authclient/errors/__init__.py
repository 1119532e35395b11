"""
Error handling module.

Provides the normalized ApiError, the failure classifier that produces it, and
presentation helpers for collaborator layers.
"""

from authclient.errors.exceptions import (
    AUTH_STATUS_CODES,
    STATUS_CODE_MAP,
    ApiError,
    ResponseError,
    code_for_status,
)
from authclient.errors.messages import (
    USER_FRIENDLY_MESSAGES,
    error_severity,
    format_validation_errors,
    get_error_message,
    log_error,
)
from authclient.errors.normalizer import (
    HttpFailure,
    NetworkFailure,
    UnknownFailure,
    classify_failure,
    normalize_error,
)

__all__ = [
    # Exceptions
    "ApiError",
    "ResponseError",
    "STATUS_CODE_MAP",
    "AUTH_STATUS_CODES",
    "code_for_status",
    # Normalizer
    "HttpFailure",
    "NetworkFailure",
    "UnknownFailure",
    "classify_failure",
    "normalize_error",
    # Messages
    "USER_FRIENDLY_MESSAGES",
    "get_error_message",
    "error_severity",
    "format_validation_errors",
    "log_error",
]
