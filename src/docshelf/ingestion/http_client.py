"""Async HTTP fetching with timeout and exponential backoff retries."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

from docshelf.errors import FetchError

LOGGER = logging.getLogger(__name__)

USER_AGENT = "docshelf/0.1"


@dataclass(slots=True)
class FetchOptions:
    timeout: float = 30.0
    max_retries: int = 3
    retry_delay: float = 2.0
    exponential_backoff: bool = True
    headers: Dict[str, str] = field(default_factory=dict)

    def delay_for(self, attempt: int) -> float:
        if self.exponential_backoff:
            return self.retry_delay * (2**attempt)
        return self.retry_delay


@dataclass(slots=True)
class FetchResult:
    success: bool
    content: Optional[bytes] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    retries: int = 0


def create_client(*, timeout: float = 30.0, max_connections: int | None = None) -> httpx.AsyncClient:
    """Build the shared async client used by the manifest loader and downloader."""
    limits = httpx.Limits(max_connections=max_connections) if max_connections else httpx.Limits()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
        limits=limits,
    )


def _is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code == 429


async def _attempt(client: httpx.AsyncClient, url: str, options: FetchOptions) -> httpx.Response:
    try:
        response = await client.get(url, headers=options.headers or None, timeout=options.timeout)
    except httpx.TimeoutException as exc:
        raise FetchError(f"Request timed out after {options.timeout:g}s: {url}") from exc
    except httpx.TransportError as exc:
        raise FetchError(f"Network error fetching {url}: {exc}") from exc

    if not response.is_success:
        raise FetchError(
            f"HTTP {response.status_code}: {response.reason_phrase}",
            retryable=_is_retryable_status(response.status_code),
            status_code=response.status_code,
        )
    return response


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    options: FetchOptions | None = None,
) -> FetchResult:
    """GET ``url``, retrying transport errors, timeouts, 5xx and 429.

    One initial attempt is followed by up to ``max_retries`` retries. The
    result always reports how many retries were consumed; failures are
    returned, never raised.
    """
    opts = options or FetchOptions()
    last_error: FetchError | None = None
    status_code: Optional[int] = None

    for attempt in range(opts.max_retries + 1):
        try:
            response = await _attempt(client, url, opts)
            return FetchResult(
                success=True,
                content=response.content,
                status_code=response.status_code,
                retries=attempt,
            )
        except FetchError as exc:
            last_error = exc
            status_code = exc.status_code
            if not exc.retryable or attempt == opts.max_retries:
                return FetchResult(
                    success=False,
                    error=str(exc),
                    status_code=status_code,
                    retries=attempt,
                )
            delay = opts.delay_for(attempt)
            LOGGER.debug(
                "Retry %s/%s for %s in %.1fs: %s", attempt + 1, opts.max_retries, url, delay, exc
            )
            await asyncio.sleep(delay)

    return FetchResult(
        success=False,
        error=str(last_error) if last_error else "Unknown error",
        status_code=status_code,
        retries=opts.max_retries,
    )
