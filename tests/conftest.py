"""
pytest configuration for authclient tests.

Adds src directory to Python path for imports and provides the shared
fixtures: a fixed clock, token minting, and a scripted fake transport.
"""

import asyncio
import sys
from collections import defaultdict, deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest
from jose import jwt

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from authclient.auth.credential_store import CredentialStore  # noqa: E402
from authclient.auth.models import CredentialPair  # noqa: E402
from authclient.auth.storage import MemoryTokenStorage  # noqa: E402
from authclient.config import ClientConfig  # noqa: E402
from authclient.errors.exceptions import ResponseError  # noqa: E402
from authclient.http.client import ApiClient  # noqa: E402
from authclient.types import TransportResponse  # noqa: E402

NOW = 1_700_000_000
BASE_URL = "https://api.test/api/v1"
TOKEN_SECRET = "test-secret"


def make_token(expires_in: float = 3600, now: int = NOW, **claims: Any) -> str:
    """Mint an HS256 token; the client never verifies signatures."""
    payload = {
        "exp": now + expires_in,
        "iat": now,
        "user_id": "user-1",
        "tenant_id": "tenant-1",
        "email": "user@example.com",
        **claims,
    }
    return jwt.encode(payload, TOKEN_SECRET, algorithm="HS256")


def make_pair(access_expires_in: int = 3600, refresh_expires_in: int = 86400, **claims):
    return CredentialPair(
        access=make_token(access_expires_in, **claims),
        refresh=make_token(refresh_expires_in, token_type="refresh", **claims),
    )


@dataclass
class SentRequest:
    method: str
    url: str
    json_body: Any = None
    params: dict | None = None
    headers: dict = field(default_factory=dict)
    timeout: float | None = None

    @property
    def bearer(self) -> str | None:
        value = self.headers.get("Authorization", "")
        return value[len("Bearer "):] if value.startswith("Bearer ") else None


class FakeTransport:
    """
    Transport double driven by per-path scripts.

    Outcomes are matched by URL suffix. A scripted outcome is consumed once;
    a responder registered with on() answers every request to its path.
    Outcomes can be:
        - int: status with empty body
        - (status, body) or (status, body, headers)
        - TransportResponse
        - an exception instance to raise
        - a callable taking the SentRequest and returning any of the above
    Non-2xx statuses raise ResponseError like the real transport.
    """

    def __init__(self):
        self.requests: list[SentRequest] = []
        self._scripts: dict[str, deque] = defaultdict(deque)
        self._responders: dict[str, Any] = {}
        self.closed = False

    def script(self, path: str, *outcomes) -> None:
        self._scripts[path].extend(outcomes)

    def on(self, path: str, responder) -> None:
        self._responders[path] = responder

    def requests_to(self, path: str) -> list[SentRequest]:
        return [r for r in self.requests if r.url.endswith(path)]

    def _outcome_for(self, request: SentRequest):
        for path, queue in self._scripts.items():
            if request.url.endswith(path) and queue:
                return queue.popleft()
        for path, responder in self._responders.items():
            if request.url.endswith(path):
                return responder
        raise AssertionError(f"Unexpected request: {request.method} {request.url}")

    async def send(
        self,
        method,
        url,
        *,
        json_body=None,
        params=None,
        headers=None,
        timeout=None,
    ) -> TransportResponse:
        request = SentRequest(method, url, json_body, params, dict(headers or {}), timeout)
        self.requests.append(request)
        await asyncio.sleep(0)

        outcome = self._outcome_for(request)
        if callable(outcome) and not isinstance(outcome, type):
            outcome = outcome(request)

        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, TransportResponse):
            response = outcome
        elif isinstance(outcome, int):
            response = TransportResponse(status=outcome)
        else:
            response = TransportResponse(*outcome)

        if not 200 <= response.status < 300:
            raise ResponseError(
                response.status,
                body=response.body,
                headers=response.headers,
                method=method,
                url=url,
            )
        return response

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def store():
    """Credential store over memory storage with a frozen clock."""
    return CredentialStore(MemoryTokenStorage(), clock=lambda: NOW)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def sleep():
    """Stand-in for asyncio.sleep that records requested delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def client(store, transport, sleep):
    return ApiClient(
        ClientConfig(api_base_url=BASE_URL),
        store=store,
        transport=transport,
        sleep=sleep,
    )
