"""
Failure classification and normalization.

Every failure raised while talking to the API is classified exactly once into
a tagged variant (HttpFailure, NetworkFailure, UnknownFailure) and then turned
into an ApiError. Code downstream of this module matches on ApiError flags and
never re-inspects transport exceptions.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp

from authclient.errors.exceptions import ApiError, ResponseError

logger = logging.getLogger(__name__)

CORRELATION_HEADERS = ("X-Correlation-ID", "X-Request-ID")


@dataclass(frozen=True)
class HttpFailure:
    """A response was received with a non-2xx status."""

    status: int
    message: str
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class NetworkFailure:
    """No response reached the client (refused, reset, DNS, timeout)."""

    message: str
    timed_out: bool = False


@dataclass(frozen=True)
class UnknownFailure:
    """Anything that is neither an HTTP response nor a network failure."""

    message: str


Failure = HttpFailure | NetworkFailure | UnknownFailure


def _exception_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


def classify_failure(exc: BaseException) -> Failure:
    """
    Decide which failure variant an exception represents.

    Classification is by exception type only. Timeouts are checked before
    OSError because TimeoutError is an OSError subclass.
    """
    if isinstance(exc, ResponseError):
        return HttpFailure(
            status=exc.status,
            message=f"Request failed with status code {exc.status}",
            body=exc.body,
            headers=dict(exc.headers),
        )

    if isinstance(exc, aiohttp.ClientResponseError):
        return HttpFailure(
            status=exc.status,
            message=exc.message or f"Request failed with status code {exc.status}",
            headers=dict(exc.headers or {}),
        )

    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        return NetworkFailure(message="Request timed out", timed_out=True)

    if isinstance(exc, aiohttp.InvalidURL):
        return UnknownFailure(message=_exception_message(exc))

    if isinstance(exc, (aiohttp.ClientError, OSError)):
        return NetworkFailure(message=f"Network error: {_exception_message(exc)}")

    return UnknownFailure(message=_exception_message(exc))


def _structured_error(body: Any) -> dict[str, Any]:
    """Return the `error` object from an API error body, or an empty dict."""
    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        return body["error"]
    return {}


def _correlation_id(body: Any, headers: dict[str, str]) -> str | None:
    if isinstance(body, dict) and body.get("correlation_id"):
        return str(body["correlation_id"])

    lowered = {k.lower(): v for k, v in headers.items()}
    for header in CORRELATION_HEADERS:
        value = lowered.get(header.lower())
        if value:
            return value
    return None


def _from_http(failure: HttpFailure, cause: BaseException) -> ApiError:
    error_body = _structured_error(failure.body)

    code = error_body.get("code")
    message = error_body.get("message")
    details = error_body.get("details")

    return ApiError.from_status(
        failure.status,
        code=code if isinstance(code, str) and code else None,
        message=message if isinstance(message, str) and message else failure.message,
        details=details if isinstance(details, dict) else None,
        correlation_id=_correlation_id(failure.body, failure.headers),
        cause=cause,
    )


def normalize_error(exc: BaseException) -> ApiError:
    """
    Convert any failure into an ApiError.

    ApiError instances pass through unchanged. This function is pure and
    never raises.

    Args:
        exc: The exception raised while performing a request

    Returns:
        Normalized ApiError
    """
    if isinstance(exc, ApiError):
        return exc

    try:
        failure = classify_failure(exc)

        if isinstance(failure, HttpFailure):
            return _from_http(failure, exc)

        if isinstance(failure, NetworkFailure):
            code = "timeout" if failure.timed_out else "network_error"
            return ApiError.network(failure.message, code=code, cause=exc)

        return ApiError.unknown(failure.message, cause=exc)

    except Exception as e:
        logger.debug(
            "Error normalization failed, falling back to unknown_error",
            extra={"error_type": type(e).__name__},
        )
        return ApiError(code="unknown_error", message="An unexpected error occurred")


__all__ = [
    "Failure",
    "HttpFailure",
    "NetworkFailure",
    "UnknownFailure",
    "classify_failure",
    "normalize_error",
]
