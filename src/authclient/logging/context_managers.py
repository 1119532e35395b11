"""Context managers for structured logging."""

from typing import Dict, Optional

from authclient.logging.context import get_log_context, set_log_context


class LogContext:
    """
    Context manager for temporary log context.

    Each logical API call runs inside one of these so every log line it
    produces (retries, renewal waits) carries the same request_id.

    Usage:
        with LogContext(request_id=call_id, http_method="GET", api_path="/me/"):
            # All logs in this block will carry the request fields
            await do_work()
    """

    def __init__(
        self,
        request_id: Optional[str] = None,
        http_method: Optional[str] = None,
        api_path: Optional[str] = None,
        tenant: Optional[str] = None,
    ):
        self.new_context = {
            "request_id": request_id,
            "http_method": http_method,
            "api_path": api_path,
            "tenant": tenant,
        }
        self.old_context: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        for key, value in self.new_context.items():
            if value is not None:
                set_log_context(**{key: value})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Restore old context
        set_log_context(
            request_id=self.old_context.get("request_id", ""),
            http_method=self.old_context.get("http_method", ""),
            api_path=self.old_context.get("api_path", ""),
            tenant=self.old_context.get("tenant", ""),
        )
        return False
