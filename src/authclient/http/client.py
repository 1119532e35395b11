"""
Authenticated request pipeline.

ApiClient is the surface application code calls. One logical call may
produce several transport requests:

    send ──2xx──> return body
      │
      ├─ 401, authenticated, not yet renewed ──> await renewal ──> send again
      ├─ retryable, budget left ──> sleep(next_delay) ──> send again
      └─ anything else ──> raise ApiError

The renewal re-issue is not counted against the retry budget, and at most one
renewal is awaited per logical call. Both budgets live on the PendingCall, so
they are never shared between calls.

Usage:
    async with ApiClient(load_config()) as client:
        client.set_credentials(CredentialPair(access=..., refresh=...))
        projects = await client.get("/projects/")
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from authclient.auth.credential_store import CredentialStore
from authclient.auth.models import CredentialPair
from authclient.auth.refresh import RefreshCoordinator, RefreshExchange, RefreshState
from authclient.auth.storage import FileTokenStorage, MemoryTokenStorage
from authclient.config import ClientConfig
from authclient.errors.exceptions import ApiError
from authclient.errors.normalizer import normalize_error
from authclient.http.transport import AiohttpTransport
from authclient.logging.context_managers import LogContext
from authclient.resilience.retry import RetryPolicy
from authclient.types import Transport, TransportResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestOptions:
    """
    Per-call pipeline options.

    Attributes:
        skip_auth: Send without a bearer token and never renew on 401
        retry: Allow backoff retries for transient failures
        timeout: Total transport timeout in seconds (client default when None)
    """

    skip_auth: bool = False
    retry: bool = True
    timeout: float | None = None


DEFAULT_OPTIONS = RequestOptions()


@dataclass
class PendingCall:
    """State of one logical call across its re-issues."""

    method: str
    path: str
    url: str
    body: Any = None
    params: dict[str, Any] | None = None
    headers: dict[str, str] | None = None
    options: RequestOptions = field(default_factory=RequestOptions)
    attempt: int = 0
    renewal_attempted: bool = False
    access_token: str | None = None
    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])


class ApiClient:
    """
    HTTP client that attaches credentials, renews them on 401 and retries
    transient failures.

    Collaborators are injected so tests and embedding applications can supply
    their own storage, transport and retry policy. Every public request
    method either returns the decoded response body or raises ApiError.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        store: CredentialStore | None = None,
        transport: Transport | None = None,
        retry_policy: RetryPolicy | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.config = config or ClientConfig()
        self.base_url = self.config.api_base_url.rstrip("/")

        if store is None:
            storage = (
                FileTokenStorage(self.config.token_file)
                if self.config.token_file
                else MemoryTokenStorage()
            )
            store = CredentialStore(storage, key=self.config.token_storage_key)
        self.store = store

        self._transport = transport or AiohttpTransport(
            timeout_seconds=self.config.api_timeout_seconds,
            max_concurrent=self.config.max_concurrent,
        )
        self.retry_policy = retry_policy or RetryPolicy(
            max_retries=self.config.max_retries,
            base_delay=self.config.retry_base_delay,
        )
        self._sleep = sleep
        self.coordinator = RefreshCoordinator(
            self.store,
            RefreshExchange(
                self._transport,
                self.url_for(self.config.refresh_path),
                timeout=self.config.api_timeout_seconds,
            ),
        )

        logger.info(
            "ApiClient initialized",
            extra={
                "base_url": self.base_url,
                "timeout_seconds": self.config.api_timeout_seconds,
                "max_concurrent": self.config.max_concurrent,
            },
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.coordinator.close()
        await self._transport.close()

    def url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    # -------------------------------------------------------------------------
    # Public request surface
    # -------------------------------------------------------------------------

    async def get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.request("GET", path, params=params, headers=headers, options=options)

    async def post(
        self,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.request(
            "POST", path, body, params=params, headers=headers, options=options
        )

    async def put(
        self,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.request(
            "PUT", path, body, params=params, headers=headers, options=options
        )

    async def patch(
        self,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.request(
            "PATCH", path, body, params=params, headers=headers, options=options
        )

    async def delete(
        self,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.request(
            "DELETE", path, body, params=params, headers=headers, options=options
        )

    async def public_get(
        self,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET without credentials (login pages, health checks)."""
        return await self.request(
            "GET", path, params=params, headers=headers, options=RequestOptions(skip_auth=True)
        )

    async def public_post(
        self,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """POST without credentials (login, registration, token verification)."""
        return await self.request(
            "POST",
            path,
            body,
            params=params,
            headers=headers,
            options=RequestOptions(skip_auth=True),
        )

    async def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        """
        Perform one logical call.

        Returns:
            Decoded JSON body, raw text for non-JSON bodies, None when empty

        Raises:
            ApiError: For every failure, including a failed renewal
        """
        call = PendingCall(
            method=method.upper(),
            path=path,
            url=self.url_for(path),
            body=body,
            params=params,
            headers=headers,
            options=options or DEFAULT_OPTIONS,
        )
        response = await self._execute(call)
        return response.body

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------

    async def _execute(self, call: PendingCall) -> TransportResponse:
        with LogContext(
            request_id=call.request_id,
            http_method=call.method,
            api_path=call.path,
            tenant=self.store.tenant_from_token(),
        ):
            while True:
                try:
                    return await self._send(call)
                except Exception as e:
                    error = normalize_error(e)

                if self._should_renew(call, error):
                    call.renewal_attempted = True
                    logger.info("Access token rejected, awaiting credential renewal")
                    call.access_token = await self.coordinator.await_fresh_credential()
                    continue

                if call.options.retry and self.retry_policy.should_retry(error, call.attempt):
                    delay = self.retry_policy.next_delay(call.attempt)
                    logger.warning(
                        "Retrying request",
                        extra={
                            "error_code": error.code,
                            "status_code": error.status_code,
                            "attempt": call.attempt + 1,
                            "max_attempts": self.retry_policy.max_retries + 1,
                            "delay_seconds": delay,
                        },
                    )
                    await self._sleep(delay)
                    call.attempt += 1
                    continue

                logger.debug(
                    "Request failed",
                    extra={
                        "error_code": error.code,
                        "status_code": error.status_code,
                        "retry_count": call.attempt,
                    },
                )
                raise error

    @staticmethod
    def _should_renew(call: PendingCall, error: ApiError) -> bool:
        return (
            error.status_code == 401
            and not call.options.skip_auth
            and not call.renewal_attempted
        )

    async def _send(self, call: PendingCall) -> TransportResponse:
        headers = dict(call.headers or {})
        if not call.options.skip_auth:
            token = call.access_token or self.store.valid_access_token()
            if token:
                headers["Authorization"] = f"Bearer {token}"

        return await self._transport.send(
            call.method,
            call.url,
            json_body=call.body,
            params=call.params,
            headers=headers or None,
            timeout=call.options.timeout,
        )

    # -------------------------------------------------------------------------
    # Session management
    # -------------------------------------------------------------------------

    def set_credentials(self, pair: CredentialPair) -> None:
        """Store a pair obtained outside the pipeline (login, registration)."""
        self.store.save(pair)

    def clear_credentials(self) -> None:
        self.store.clear()

    async def refresh_session(self) -> bool:
        """Force a renewal. Returns False (with credentials cleared) on failure."""
        try:
            await self.coordinator.await_fresh_credential()
        except ApiError as e:
            logger.warning(
                "Session refresh failed",
                extra={"error_code": e.code, "status_code": e.status_code},
            )
            return False
        return True

    @property
    def renewal_state(self) -> RefreshState:
        return self.coordinator.state

    @property
    def is_authenticated(self) -> bool:
        return self.store.has_valid_session()

    def get_status(self) -> dict[str, Any]:
        pair = self.store.load()
        expiring_soon = pair is not None and self.store.is_expiring_soon(
            pair.access, self.config.token_refresh_buffer_seconds
        )
        return {
            "is_authenticated": self.is_authenticated,
            "expiring_soon": expiring_soon,
            "renewal_state": self.renewal_state.value,
            "renewal_count": self.coordinator.renewal_count,
            "pending_waiters": self.coordinator.pending_waiters,
            "token_expiration": self.store.token_expiration(),
            "remaining_lifetime": self.store.remaining_lifetime(),
            "user_id": self.store.user_id_from_token(),
            "tenant": self.store.tenant_from_token(),
        }


__all__ = [
    "ApiClient",
    "PendingCall",
    "RequestOptions",
]
