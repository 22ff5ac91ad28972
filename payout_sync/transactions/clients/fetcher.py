"""
Rate-limit aware HTTP fetcher.

Wraps an ``httpx.AsyncClient`` and retries requests the platform rejects
with HTTP 429, waiting for the server-supplied Retry-After delay or an
exponential fallback.
"""

import asyncio
from http import HTTPStatus
from typing import Any, Optional

import httpx
import structlog

from payout_sync.transactions.clients.base import RateLimited, RequestFailed
from payout_sync.transactions.config import RateLimitConfig

logger = structlog.get_logger()


class RateLimitedFetcher:
    """Performs HTTP requests with bounded 429 backoff."""

    def __init__(self, client: httpx.AsyncClient, config: Optional[RateLimitConfig] = None):
        """
        Initialize the fetcher.

        Args:
            client: Shared HTTP client
            config: Rate-limit backoff configuration
        """
        self.client = client
        self.config = config or RateLimitConfig()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Perform a request and return its successful response.

        A 429 is retried whether it comes back as a response or is raised
        as ``httpx.HTTPStatusError``.

        Args:
            method: HTTP method
            url: Absolute or client-relative URL
            **kwargs: Passed through to ``httpx.AsyncClient.request``

        Returns:
            The 2xx response

        Raises:
            RateLimited: Still rate limited after ``max_retries`` retries
            RequestFailed: Any other non-2xx status or transport error
        """
        retry_count = 0
        fallback_delay = self.config.initial_delay

        while True:
            try:
                response = await self.client.request(method, url, **kwargs)
            except httpx.HTTPStatusError as e:
                response = e.response
            except httpx.HTTPError as e:
                raise RequestFailed(f"{method} {url} failed: {e}") from e

            if response.status_code != HTTPStatus.TOO_MANY_REQUESTS:
                if not response.is_success:
                    raise RequestFailed(
                        f"{method} {url} failed with status {response.status_code}",
                        status_code=response.status_code,
                    )
                return response

            if retry_count >= self.config.max_retries:
                logger.error(
                    "fetcher.rate_limit_exhausted",
                    method=method,
                    url=url,
                    retries=retry_count,
                )
                raise RateLimited(
                    f"{method} {url}: too many requests after {retry_count} retries"
                )

            delay = self._retry_delay(response, fallback_delay)
            logger.warning(
                "fetcher.rate_limited",
                method=method,
                url=url,
                delay_seconds=delay,
                attempt=retry_count + 1,
                max_retries=self.config.max_retries,
            )
            await asyncio.sleep(delay)

            retry_count += 1
            fallback_delay *= self.config.exponential_base

    @staticmethod
    def _retry_delay(response: httpx.Response, fallback: float) -> float:
        """Seconds to wait; the platform sends Retry-After in milliseconds."""
        header = response.headers.get("retry-after")
        if header is None:
            return fallback
        try:
            return max(int(header.strip()), 0) / 1000.0
        except ValueError:
            return fallback
