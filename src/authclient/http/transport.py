"""aiohttp transport with bounded concurrency and per-request timeouts."""

import asyncio
import json
import logging
from typing import Any

import aiohttp

from authclient.errors.exceptions import ResponseError
from authclient.types import TransportResponse

logger = logging.getLogger(__name__)

SLOW_REQUEST_SECONDS = 2.0


async def _read_text(response: aiohttp.ClientResponse) -> str:
    """Response text with undecodable bytes replaced, so the status is never lost."""
    raw = await response.read()
    try:
        return raw.decode(response.charset or "utf-8", errors="replace")
    except LookupError:
        return raw.decode("utf-8", errors="replace")


def _decode_body(text: str) -> Any:
    """JSON when the body parses, raw text otherwise, None when empty."""
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


class AiohttpTransport:
    """
    Sends one HTTP request per call over a shared aiohttp session.

    Non-2xx responses raise ResponseError carrying the decoded body and headers.
    Connection failures and timeouts propagate as the aiohttp / asyncio
    exceptions that caused them; the error normalizer classifies both.
    """

    def __init__(
        self,
        timeout_seconds: float = 30,
        max_concurrent: int = 20,
        default_headers: dict[str, str] | None = None,
    ):
        self.timeout_seconds = timeout_seconds
        self.max_concurrent = max_concurrent
        self.default_headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            **(default_headers or {}),
        }

        self._session: aiohttp.ClientSession | None = None
        self._semaphore: asyncio.Semaphore | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def _ensure_session(self) -> None:
        if self._closed:
            raise RuntimeError("AiohttpTransport is closed, cannot create new session")
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=self.max_concurrent,
                limit_per_host=self.max_concurrent,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers=self.default_headers,
            )
            self._semaphore = asyncio.Semaphore(self.max_concurrent)

    async def close(self) -> None:
        self._closed = True
        if self._session and not self._session.closed:
            await self._session.close()
            await asyncio.sleep(0)
        self._session = None

    async def send(
        self,
        method: str,
        url: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> TransportResponse:
        await self._ensure_session()

        total = timeout if timeout is not None else self.timeout_seconds
        loop = asyncio.get_running_loop()

        async with self._semaphore:
            start_time = loop.time()
            try:
                async with self._session.request(
                    method,
                    url,
                    params=params,
                    json=json_body,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=total),
                ) as response:
                    text = await _read_text(response)
                    duration = loop.time() - start_time
                    body = _decode_body(text)
                    response_headers = dict(response.headers)

                    if not 200 <= response.status < 300:
                        logger.warning(
                            "API request failed",
                            extra={
                                "http_url": url,
                                "http_status": response.status,
                                "duration_seconds": round(duration, 3),
                            },
                        )
                        raise ResponseError(
                            response.status,
                            body=body,
                            headers=response_headers,
                            method=method,
                            url=url,
                        )

                    slow = duration > SLOW_REQUEST_SECONDS
                    logger.log(
                        logging.INFO if slow else logging.DEBUG,
                        "Slow API request" if slow else "API request succeeded",
                        extra={
                            "http_url": url,
                            "http_status": response.status,
                            "duration_seconds": round(duration, 3),
                        },
                    )
                    return TransportResponse(
                        status=response.status,
                        body=body,
                        headers=response_headers,
                    )

            except TimeoutError:
                logger.warning(
                    "API request timeout",
                    extra={
                        "http_url": url,
                        "timeout_seconds": total,
                        "duration_seconds": round(loop.time() - start_time, 3),
                    },
                )
                raise

            except aiohttp.ClientError as e:
                logger.warning(
                    f"API connection error: {e}",
                    extra={
                        "http_url": url,
                        "error_type": type(e).__name__,
                        "duration_seconds": round(loop.time() - start_time, 3),
                    },
                )
                raise


__all__ = ["AiohttpTransport"]
