"""
Single-flight credential renewal.

The RefreshCoordinator owns the only piece of shared coordination state in the
client: whether a renewal exchange is in flight and who is waiting for it.
Callers see a single operation, await_fresh_credential(), and cannot observe or
modify the intermediate state.

State machine:
    IDLE ------ await_fresh_credential() ------> REFRESHING
      ^     (start renewal task, enqueue caller)       |
      |                                                | await_fresh_credential()
      |                                                | (enqueue caller only)
      +---- renewal settles: persist or clear, --------+
            drain every waiter in arrival order

Usage:
    coordinator = RefreshCoordinator(store, RefreshExchange(transport, url))
    token = await coordinator.await_fresh_credential()  # raises ApiError on failure
"""

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Protocol

from authclient.auth.credential_store import CredentialStore
from authclient.auth.models import CredentialPair
from authclient.errors.exceptions import ApiError
from authclient.errors.normalizer import normalize_error
from authclient.types import Transport

logger = logging.getLogger(__name__)

RENEWAL_FAILURE_CODE = "token_revoked"


class RefreshState(Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class CredentialExchange(Protocol):
    """Trades a long-lived token for a new credential pair."""

    async def renew(self, refresh_token: str) -> CredentialPair:
        """
        Perform one renewal exchange.

        Raises:
            Any exception on failure; the coordinator normalizes it.
        """
        ...


class RefreshExchange:
    """
    Renewal exchange over the client's transport.

    Sends POST {"refresh": <token>} to the refresh endpoint and expects
    {"access": ..., "refresh": ...}. Servers that do not rotate refresh
    tokens may omit "refresh"; the token that was sent is kept in that case.
    The request carries no Authorization header and is never retried.
    """

    def __init__(self, transport: Transport, url: str, timeout: float | None = None):
        self._transport = transport
        self.url = url
        self.timeout = timeout

    async def renew(self, refresh_token: str) -> CredentialPair:
        response = await self._transport.send(
            "POST",
            self.url,
            json_body={"refresh": refresh_token},
            timeout=self.timeout,
        )

        body = response.body if isinstance(response.body, dict) else {}
        pair = CredentialPair.from_dict(
            {"access": body.get("access"), "refresh": body.get("refresh") or refresh_token}
        )
        if pair is None:
            raise ApiError.unknown("Renewal response did not contain an access token")
        return pair


class RenewalWaiters:
    """
    FIFO queue of callers suspended on an in-flight renewal.

    Each waiter is an asyncio.Future: resolving it with a token resumes the
    caller, failing it with an ApiError fails the caller. Both drain
    operations settle every queued waiter in arrival order and leave the
    queue empty. Waiters whose caller was cancelled are skipped.
    """

    def __init__(self):
        self._queue: deque[asyncio.Future] = deque()

    def __len__(self) -> int:
        return len(self._queue)

    def enqueue(self) -> asyncio.Future:
        waiter = asyncio.get_running_loop().create_future()
        self._queue.append(waiter)
        return waiter

    def drain_success(self, token: str) -> int:
        """Resume every waiter with token. Returns the number notified."""
        notified = 0
        while self._queue:
            waiter = self._queue.popleft()
            if not waiter.done():
                waiter.set_result(token)
                notified += 1
        return notified

    def drain_failure(self, error: ApiError) -> int:
        """Fail every waiter with its own copy of error. Returns the number notified."""
        notified = 0
        while self._queue:
            waiter = self._queue.popleft()
            if not waiter.done():
                waiter.set_exception(error.copy())
                notified += 1
        return notified


def renewal_failure_error(exc: BaseException) -> ApiError:
    """
    Auth-class error reported to every caller of a failed renewal.

    The underlying failure (status and code) is kept in details so callers
    can still tell a network blip from a revoked session.
    """
    underlying = normalize_error(exc)
    return ApiError.from_status(
        401,
        code=RENEWAL_FAILURE_CODE,
        message=f"Credential renewal failed: {underlying.message}",
        details={
            "renewal_status": underlying.status_code,
            "renewal_code": underlying.code,
        },
        correlation_id=underlying.correlation_id,
        cause=exc,
    )


class RefreshCoordinator:
    """
    Ensures at most one renewal exchange is in flight.

    The renewal runs in a task owned by the coordinator rather than by the
    caller that triggered it, so cancelling that caller does not strand the
    other waiters.
    """

    def __init__(self, store: CredentialStore, exchange: CredentialExchange):
        self._store = store
        self._exchange = exchange
        self._state = RefreshState.IDLE
        self._waiters = RenewalWaiters()
        self._task: asyncio.Task | None = None
        self.renewal_count = 0

    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def pending_waiters(self) -> int:
        return len(self._waiters)

    async def await_fresh_credential(self) -> str:
        """
        Wait for a renewed access token.

        Starts a renewal when none is in flight, otherwise joins the one in
        flight.

        Returns:
            The new access token

        Raises:
            ApiError: Auth-class error when the renewal failed
        """
        waiter = self._waiters.enqueue()

        if self._state is RefreshState.IDLE:
            self._state = RefreshState.REFRESHING
            self.renewal_count += 1
            self._task = asyncio.create_task(self._run_renewal())
            logger.info("Credential renewal started", extra={"renewal_count": self.renewal_count})
        else:
            logger.debug(
                "Joining in-flight credential renewal",
                extra={"waiters": len(self._waiters)},
            )

        return await waiter

    async def _run_renewal(self) -> None:
        try:
            pair = self._store.load()
            if pair is None:
                raise ApiError.from_status(
                    401,
                    code=RENEWAL_FAILURE_CODE,
                    message="No refresh token available",
                    details={"reason": "no_refresh_token"},
                )
            new_pair = await self._exchange.renew(pair.refresh)

        except asyncio.CancelledError:
            self._settle_failure(ApiError.unknown("Credential renewal cancelled"), clear=False)
            raise

        except Exception as e:
            error = e if _is_renewal_error(e) else renewal_failure_error(e)
            logger.error(
                "Credential renewal failed",
                extra={
                    "error_code": error.code,
                    "status_code": error.status_code,
                    "error_message": error.message[:200],
                },
            )
            self._settle_failure(error, clear=True)

        else:
            self._store.save(new_pair)
            self._state = RefreshState.IDLE
            notified = self._waiters.drain_success(new_pair.access)
            logger.info("Credential renewal succeeded", extra={"waiters": notified})

        finally:
            self._task = None

    def _settle_failure(self, error: ApiError, clear: bool) -> None:
        if clear:
            self._store.clear()
        self._state = RefreshState.IDLE
        self._waiters.drain_failure(error)

    async def close(self) -> None:
        """Cancel an in-flight renewal; its waiters fail with an ApiError."""
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass


def _is_renewal_error(exc: BaseException) -> bool:
    return isinstance(exc, ApiError) and exc.code == RENEWAL_FAILURE_CODE


__all__ = [
    "RefreshCoordinator",
    "RefreshExchange",
    "RefreshState",
    "RenewalWaiters",
    "CredentialExchange",
    "renewal_failure_error",
    "RENEWAL_FAILURE_CODE",
]
