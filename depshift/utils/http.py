"""
HTTP client utilities for depshift.

Registry metadata is fetched through :class:`HTTPClient`, a thin wrapper
around :class:`httpx.AsyncClient` that adds:

* retries with exponential backoff and jitter for timeouts, connection
  failures and 5xx responses
* ``429 Too Many Requests`` handling that honours ``Retry-After``
* an optional minimum delay between requests
* a semaphore bounding the number of requests in flight

Status codes are mapped onto the depshift exception hierarchy: 404
becomes :class:`RegistryError` (callers decide whether a missing package
is fatal), other 4xx responses become :class:`NetworkError` immediately.
"""

from __future__ import annotations

import time
import httpx
import random
import asyncio
from typing import Any, Dict, Optional, cast

from depshift.utils.logger import get_logger
from depshift.__version__ import __version__
from depshift.exceptions import NetworkError, RegistryError
from depshift.constants import (
    DEFAULT_TIMEOUT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_MAX_CONCURRENCY,
    USER_AGENT_TEMPLATE,
)

logger = get_logger("http")

#: Seconds to wait after a 429 without a usable ``Retry-After`` header.
DEFAULT_RETRY_AFTER = 1

#: Upper bound for a server-provided ``Retry-After`` value.
MAX_RETRY_AFTER = 60


def _retry_after_seconds(response: httpx.Response) -> int:
    """Return the delay requested by a 429 response.

    Only the delta-seconds form of ``Retry-After`` is understood; an HTTP
    date or garbage falls back to :data:`DEFAULT_RETRY_AFTER`.
    """
    value = response.headers.get("Retry-After", "")
    try:
        seconds = int(value)
    except ValueError:
        return DEFAULT_RETRY_AFTER
    return max(0, min(seconds, MAX_RETRY_AFTER))


def _backoff_delay(attempt: int) -> float:
    return (2**attempt) + random.uniform(0.0, 0.3)


class HTTPClient:
    """Asynchronous registry client with retries, rate limiting and a
    concurrency bound.

    Args:
        timeout: Request timeout in seconds.
        max_retries: Retries after a timeout, connection error or 5xx.
        rate_limit_delay: Minimum delay (seconds) between requests.
        verify_ssl: Whether to verify TLS certificates.
        user_agent: Custom User-Agent header value.
        max_concurrency: Maximum number of requests in flight.
        max_rate_limit_retries: How many 429 responses to sit out before
            giving up.

    Example:
        >>> async with HTTPClient(max_concurrency=4) as client:
        ...     packument = await client.get_json("https://registry.npmjs.org/rxjs")
    """

    def __init__(
        self,
        *,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        rate_limit_delay: float = 0.0,
        verify_ssl: bool = True,
        user_agent: Optional[str] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        max_rate_limit_retries: int = 5,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.rate_limit_delay = rate_limit_delay
        self.verify_ssl = verify_ssl
        self.user_agent = user_agent or USER_AGENT_TEMPLATE.format(version=__version__)
        self.max_concurrency = max_concurrency
        self.max_rate_limit_retries = max_rate_limit_retries

        self._client: Optional[httpx.AsyncClient] = None
        self._last_request_time: float = 0.0
        self._rate_limit_lock = asyncio.Lock()
        self._semaphore = asyncio.Semaphore(max_concurrency)

    async def __aenter__(self) -> "HTTPClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                http2=True,
                verify=self.verify_ssl,
                follow_redirects=True,
                headers={
                    "User-Agent": self.user_agent,
                    # Full packuments: the abbreviated install format drops
                    # the custom manifest fields upgrade metadata lives in
                    "Accept": "application/json",
                },
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client. Safe to call repeatedly."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _throttle(self) -> None:
        """Enforce :attr:`rate_limit_delay` between outgoing requests."""
        if self.rate_limit_delay <= 0:
            return

        async with self._rate_limit_lock:
            now = time.monotonic()
            wait = self.rate_limit_delay - (now - self._last_request_time)
            if wait > 0:
                self._last_request_time = now + wait
                await asyncio.sleep(wait)
            else:
                self._last_request_time = now

    def _raise_for_client_error(self, response: httpx.Response, url: str) -> None:
        """Map a non-retryable 4xx response onto the exception hierarchy."""
        status = response.status_code
        if status == 404:
            raise RegistryError(
                f"Resource not found: {url}",
                url=url,
                status_code=404,
            )
        raise NetworkError(
            f"HTTP {status} error for {url}",
            url=url,
            status_code=status,
            response_body=response.text,
        )

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send one request, retrying transient failures.

        Raises:
            RegistryError: The resource does not exist (404).
            NetworkError: Any other client error, too many 429s, or the
                retries were exhausted.
        """
        client = await self._ensure_client()
        last_exc: Optional[Exception] = None
        rate_limited = 0
        attempt = 0

        while attempt <= self.max_retries:
            await self._throttle()
            try:
                async with self._semaphore:
                    response = await client.request(method, url, **kwargs)
            except httpx.TimeoutException as exc:
                last_exc = exc
                logger.warning(
                    "Request timeout (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    url,
                )
            except httpx.TransportError as exc:
                last_exc = exc
                logger.warning(
                    "Network error (%d/%d): %s",
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                )
            else:
                status = response.status_code

                if status == 429:
                    rate_limited += 1
                    if rate_limited > self.max_rate_limit_retries:
                        raise NetworkError(
                            f"Rate limit exceeded after {self.max_rate_limit_retries} retries",
                            url=url,
                            status_code=429,
                        )
                    delay = _retry_after_seconds(response)
                    logger.warning(
                        "Rate limited (429), retrying after %ds (%d/%d)",
                        delay,
                        rate_limited,
                        self.max_rate_limit_retries,
                    )
                    await asyncio.sleep(delay)
                    # A 429 does not use up one of the regular retries
                    continue

                if status < 400:
                    return response

                if status < 500:
                    self._raise_for_client_error(response, url)

                last_exc = NetworkError(
                    f"HTTP {status} error for {url}",
                    url=url,
                    status_code=status,
                    response_body=response.text,
                )
                logger.warning(
                    "HTTP %d error (%d/%d): %s",
                    status,
                    attempt + 1,
                    self.max_retries + 1,
                    url,
                )

            if attempt < self.max_retries:
                delay = _backoff_delay(attempt)
                logger.debug("Retrying in %.2fs", delay)
                await asyncio.sleep(delay)
            attempt += 1

        raise NetworkError(
            f"Request failed after {self.max_retries + 1} attempts: {url}",
            url=url,
        ) from last_exc

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Perform a GET request with retry logic."""
        return await self._send("GET", url, **kwargs)

    async def get_json(self, url: str, **kwargs: Any) -> Dict[str, Any]:
        """GET ``url`` and return the decoded JSON object.

        Raises:
            NetworkError: The body is not a JSON object.
        """
        response = await self.get(url, **kwargs)

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError(
                f"Invalid JSON response from {url}",
                url=url,
                response_body=response.text,
            ) from exc

        if not isinstance(data, dict):
            raise NetworkError(
                f"Expected JSON object from {url}",
                url=url,
                response_body=response.text,
            )

        return cast(Dict[str, Any], data)
