"""
Core types and protocols used across modules.

This module provides the protocol definitions shared by the credential store,
the refresh coordinator and the request pipeline, so each collaborator can be
swapped (tests, alternative storage, alternative HTTP stacks) without the
others noticing.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class TransportResponse:
    """
    Successful (2xx) response returned by a transport.

    Attributes:
        status: HTTP status code
        body: Decoded JSON body, raw text when the body is not JSON,
              or None when the body is empty
        headers: Response headers (case preserved as received)
    """

    status: int
    body: Any = None
    headers: dict[str, str] = field(default_factory=dict)


class TokenStorage(Protocol):
    """
    Protocol for client-local persistent key/value storage.

    Implementations hold serialized credential records. Any method may raise;
    the credential store is responsible for containing those failures.
    """

    def get_item(self, key: str) -> str | None:
        """
        Read the raw value stored under key.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if the key is absent
        """
        ...

    def set_item(self, key: str, value: str) -> None:
        """
        Store value under key, replacing any previous value.

        Args:
            key: Storage key
            value: Serialized value
        """
        ...

    def remove_item(self, key: str) -> None:
        """
        Remove key. Removing an absent key is not an error.

        Args:
            key: Storage key
        """
        ...


class Transport(Protocol):
    """
    Protocol for the HTTP transport used by the request pipeline.

    A transport performs exactly one exchange per call. It returns a
    TransportResponse for 2xx statuses and raises for everything else:
    ResponseError for non-2xx responses, and the underlying client or
    timeout exception when no response was received.
    """

    async def send(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> TransportResponse:
        """
        Send one HTTP request.

        Args:
            method: HTTP method (GET, POST, ...)
            url: Absolute URL
            json_body: JSON-serializable request body
            params: Query string parameters
            headers: Request headers
            timeout: Total timeout in seconds for this exchange

        Returns:
            TransportResponse for 2xx responses

        Raises:
            ResponseError: For non-2xx responses
        """
        ...

    async def close(self) -> None:
        """Release network resources."""
        ...


__all__ = [
    "TokenStorage",
    "Transport",
    "TransportResponse",
]
