"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_request_id: ContextVar[str] = ContextVar("request_id", default="")
_http_method: ContextVar[str] = ContextVar("http_method", default="")
_api_path: ContextVar[str] = ContextVar("api_path", default="")
_tenant: ContextVar[str] = ContextVar("tenant", default="")


def set_log_context(
    request_id: Optional[str] = None,
    http_method: Optional[str] = None,
    api_path: Optional[str] = None,
    tenant: Optional[str] = None,
) -> None:
    if request_id is not None:
        _request_id.set(request_id)
    if http_method is not None:
        _http_method.set(http_method)
    if api_path is not None:
        _api_path.set(api_path)
    if tenant is not None:
        _tenant.set(tenant)


def get_log_context() -> Dict[str, str]:
    return {
        "request_id": _request_id.get(),
        "http_method": _http_method.get(),
        "api_path": _api_path.get(),
        "tenant": _tenant.get(),
    }


def clear_log_context() -> None:
    _request_id.set("")
    _http_method.set("")
    _api_path.set("")
    _tenant.set("")
