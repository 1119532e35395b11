"""
Exception types for the authenticated request pipeline.

ApiError is the single normalized error shape that leaves the public client
surface. ResponseError is raised by transports for non-2xx responses and is
consumed by the error normalizer; callers never see it.
"""

from typing import Any

# Status -> code table used when a response carries no structured error body
STATUS_CODE_MAP: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    403: "forbidden",
    404: "not_found",
    429: "rate_limited",
    500: "server_error",
}

AUTH_STATUS_CODES = frozenset({401, 403})

DEFAULT_ERROR_MESSAGE = "An error occurred"


def code_for_status(status_code: int | None) -> str:
    """Map an HTTP status to its canonical error code."""
    return STATUS_CODE_MAP.get(status_code or 0, "unknown_error")


class ResponseError(Exception):
    """
    Non-2xx HTTP response raised by a transport.

    Attributes:
        status: HTTP status code
        body: Decoded JSON body, raw text, or None
        headers: Response headers
        method: Request method
        url: Request URL
    """

    def __init__(
        self,
        status: int,
        body: Any = None,
        headers: dict[str, str] | None = None,
        method: str = "",
        url: str = "",
    ):
        self.status = status
        self.body = body
        self.headers = headers or {}
        self.method = method
        self.url = url
        super().__init__(f"HTTP {status}: {method} {url}".strip())


class ApiError(Exception):
    """
    Normalized error raised by every public client operation.

    The three classification flags are derived from status_code (or from the
    absence of a response) and never from message text.

    Attributes:
        code: Canonical error code (network_error, unauthorized, ...)
        message: Human-readable description
        status_code: HTTP status, 0 when no response was received
        details: Structured details from the error body
        correlation_id: Server correlation id, when provided
        is_network_error: True only when no response reached the client
        is_auth_error: True for 401 and 403
        is_server_error: True for any status >= 500
        cause: Original exception, if any
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 0,
        details: dict[str, Any] | None = None,
        correlation_id: str | None = None,
        is_network_error: bool = False,
        is_auth_error: bool = False,
        is_server_error: bool = False,
        cause: BaseException | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.correlation_id = correlation_id
        self.is_network_error = is_network_error
        self.is_auth_error = is_auth_error
        self.is_server_error = is_server_error
        self.cause = cause
        super().__init__(message)

    @classmethod
    def from_status(
        cls,
        status_code: int,
        code: str | None = None,
        message: str | None = None,
        details: dict[str, Any] | None = None,
        correlation_id: str | None = None,
        cause: BaseException | None = None,
    ) -> "ApiError":
        """Build an error for a received response, deriving flags from the status."""
        return cls(
            code=code or code_for_status(status_code),
            message=message or DEFAULT_ERROR_MESSAGE,
            status_code=status_code,
            details=details,
            correlation_id=correlation_id,
            is_network_error=False,
            is_auth_error=status_code in AUTH_STATUS_CODES,
            is_server_error=status_code >= 500,
            cause=cause,
        )

    @classmethod
    def network(
        cls,
        message: str,
        code: str = "network_error",
        cause: BaseException | None = None,
    ) -> "ApiError":
        """Build an error for a request that never received a response."""
        return cls(
            code=code,
            message=message,
            status_code=0,
            is_network_error=True,
            cause=cause,
        )

    @classmethod
    def unknown(cls, message: str, cause: BaseException | None = None) -> "ApiError":
        """Build an error for a failure that is neither HTTP nor network."""
        return cls(code="unknown_error", message=message, status_code=0, cause=cause)

    def copy(self) -> "ApiError":
        """Independent instance with the same fields and cause."""
        return type(self)(
            code=self.code,
            message=self.message,
            status_code=self.status_code,
            details=dict(self.details) if self.details is not None else None,
            correlation_id=self.correlation_id,
            is_network_error=self.is_network_error,
            is_auth_error=self.is_auth_error,
            is_server_error=self.is_server_error,
            cause=self.cause,
        )

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "statusCode": self.status_code,
            "isNetworkError": self.is_network_error,
            "isAuthError": self.is_auth_error,
            "isServerError": self.is_server_error,
        }
        if self.details is not None:
            result["details"] = self.details
        if self.correlation_id is not None:
            result["correlationId"] = self.correlation_id
        return result

    def __repr__(self) -> str:
        return (
            f"ApiError(code={self.code!r}, status_code={self.status_code}, "
            f"message={self.message!r})"
        )

    def __str__(self) -> str:
        if self.status_code:
            return f"{self.code} ({self.status_code}): {self.message}"
        return f"{self.code}: {self.message}"


__all__ = [
    "ApiError",
    "ResponseError",
    "STATUS_CODE_MAP",
    "AUTH_STATUS_CODES",
    "DEFAULT_ERROR_MESSAGE",
    "code_for_status",
]
