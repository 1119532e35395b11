"""
Presentation helpers for normalized errors.

Collaborator layers (UI, CLI) use these to turn an ApiError into something a
person can read without re-inspecting the error shape themselves.
"""

import json
import logging
from typing import Any

from authclient.errors.exceptions import DEFAULT_ERROR_MESSAGE, ApiError

logger = logging.getLogger(__name__)

USER_FRIENDLY_MESSAGES: dict[str, str] = {
    # Authentication
    "unauthorized": "Please log in to continue.",
    "forbidden": "You do not have permission to perform this action.",
    "token_revoked": "Your session has expired. Please log in again.",
    # Tenant
    "tenant_not_found": "Unable to find your organization. Please check your URL.",
    "tenant_inactive": "Your organization account is currently inactive.",
    "cross_tenant_access": "You cannot access resources from another organization.",
    # Network
    "network_error": "Unable to connect to the server. Please check your internet connection.",
    "timeout": "The request timed out. Please try again.",
    # Server
    "server_error": "Something went wrong on our end. Please try again later.",
    "internal_error": "An unexpected error occurred. Please try again.",
    # Validation
    "bad_request": "Invalid request. Please check your input.",
    "validation_error": "Please check your input and try again.",
    # Resources
    "not_found": "The requested resource was not found.",
    "rate_limited": "Too many requests. Please wait a moment and try again.",
    "unknown_error": "An unexpected error occurred. Please try again.",
}

# Messages produced locally rather than by the API; not worth showing to users
_GENERIC_MESSAGE_MARKERS = (DEFAULT_ERROR_MESSAGE, "Request failed with status code")

SEVERITIES = ("info", "warning", "error", "critical")


def _is_generic(message: str) -> bool:
    return any(marker in message for marker in _GENERIC_MESSAGE_MARKERS)


def get_error_message(error: ApiError | BaseException | str) -> str:
    """
    Get a user-friendly message for an error or error code.

    API-provided messages win over the local table unless they are one of
    the generic messages produced by this library.
    """
    if isinstance(error, str):
        return USER_FRIENDLY_MESSAGES.get(error, error)

    if isinstance(error, ApiError):
        if error.message and not _is_generic(error.message):
            return error.message
        return USER_FRIENDLY_MESSAGES.get(
            error.code, error.message or USER_FRIENDLY_MESSAGES["unknown_error"]
        )

    return str(error) or USER_FRIENDLY_MESSAGES["unknown_error"]


def error_severity(error: ApiError) -> str:
    """
    Severity used by UIs to pick a treatment.

    Returns:
        One of "info", "warning", "error", "critical"
    """
    if error.is_network_error or error.is_auth_error:
        return "warning"
    if error.is_server_error:
        return "error"

    status = error.status_code
    if status == 429:
        return "warning"
    if status == 404:
        return "info"
    if status >= 400:
        return "warning"
    return "error"


def format_validation_errors(details: dict[str, Any] | None) -> dict[str, str]:
    """
    Flatten validation details into one message per field.

    Lists are joined with ", ", nested objects are JSON-encoded.
    """
    if not details:
        return {}

    formatted: dict[str, str] = {}
    for field_name, errors in details.items():
        if isinstance(errors, list):
            formatted[field_name] = ", ".join(str(e) for e in errors)
        elif isinstance(errors, str):
            formatted[field_name] = errors
        elif isinstance(errors, dict):
            formatted[field_name] = json.dumps(errors, sort_keys=True)
    return formatted


def log_error(
    error: ApiError,
    context: dict[str, Any] | None = None,
    log: logging.Logger | None = None,
) -> None:
    """Log a normalized error with its structured fields."""
    (log or logger).error(
        "Application error: %s",
        error.message,
        extra={
            **(context or {}),
            "error_code": error.code,
            "status_code": error.status_code,
            "correlation_id": error.correlation_id,
            "is_network_error": error.is_network_error,
        },
    )


__all__ = [
    "USER_FRIENDLY_MESSAGES",
    "SEVERITIES",
    "get_error_message",
    "error_severity",
    "format_validation_errors",
    "log_error",
]
