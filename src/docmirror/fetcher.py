"""HTTP fetcher with bounded retries and exponential backoff.

All network I/O goes through a single Fetcher instance. The Fetcher receives
an httpx.AsyncClient via constructor injection; ``open_app`` owns the
client lifecycle.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx
import structlog

from docmirror.errors import NetworkError

if TYPE_CHECKING:
    from docmirror.config import FetcherSettings

log = structlog.get_logger()


def build_http_client(settings: FetcherSettings) -> httpx.AsyncClient:
    """Create the shared httpx client. Called once per invocation."""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent},
        limits=httpx.Limits(
            max_connections=max(settings.concurrency, 1) * 2,
            max_keepalive_connections=max(settings.concurrency, 1),
        ),
    )


class Fetcher:
    """GET with retry. Raises NetworkError once the retry budget is spent."""

    def __init__(self, client: httpx.AsyncClient, settings: FetcherSettings) -> None:
        self._client = client
        self._settings = settings

    async def fetch(
        self,
        url: str,
        *,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        timeout: float | None = None,
    ) -> str:
        """Fetch ``url`` and return the response body as text.

        Makes at most ``max_retries + 1`` attempts, sleeping
        ``retry_delay * 2**attempt`` seconds between them. Transport errors,
        timeouts and non-2xx responses are all retried.
        """
        retries = self._settings.max_retries if max_retries is None else max_retries
        delay = self._settings.retry_delay_seconds if retry_delay is None else retry_delay
        request_timeout = self._settings.timeout_seconds if timeout is None else timeout

        last_error = "Unknown error"
        status_code: int | None = None

        for attempt in range(retries + 1):
            try:
                response = await self._client.get(url, timeout=request_timeout)
                status_code = response.status_code
                if response.is_success:
                    log.debug(
                        "fetch_complete",
                        url=url,
                        status_code=status_code,
                        attempts=attempt + 1,
                        content_length=len(response.text),
                    )
                    return response.text
                last_error = f"HTTP {status_code} fetching {url}"
            except httpx.HTTPError as exc:
                last_error = f"Network error fetching {url}: {exc!r}"

            if attempt == retries:
                break

            backoff = delay * 2**attempt
            log.debug("fetch_retry", url=url, attempt=attempt + 1, backoff_seconds=backoff)
            await asyncio.sleep(backoff)

        log.warning("fetch_failed", url=url, status_code=status_code, retries=retries)
        raise NetworkError(last_error, status_code=status_code, retries=retries)
