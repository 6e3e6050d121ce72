"""
HTTP client utilities with retry support and observability.

Used for the public astronomy APIs (NASA APOD, Open Notify) and as the
aiohttp session behind webhook delivery. Provides:
- Configurable timeouts and concurrency
- Retry with exponential backoff for transient failures
- Clear error taxonomy (NotFoundError, ForbiddenError)
- Session lifecycle management
"""

import asyncio
import json
import os
import random
from dataclasses import dataclass
from typing import Any

import aiohttp

from utils.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Error Taxonomy
# ---------------------------------------------------------------------------

class NotFoundError(Exception):
    """Raised when a 404 is encountered and the caller should treat the resource as gone."""


class ForbiddenError(Exception):
    """Raised when a 403 is encountered (bad API key or access denied)."""


# ---------------------------------------------------------------------------
# Retry Policy
# ---------------------------------------------------------------------------

@dataclass
class HTTPRetryPolicy:
    """Configuration for HTTP retry behavior."""

    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    exponential_base: float = 2.0
    jitter: bool = True
    retryable_statuses: frozenset[int] = frozenset({408, 429, 500, 502, 503, 504})

    def calculate_delay(self, attempt: int) -> float:
        """Calculate delay for given attempt number (0-indexed)."""
        delay = self.base_delay * (self.exponential_base ** attempt)
        delay = min(delay, self.max_delay)

        if self.jitter:
            jitter_range = delay * 0.25
            delay += random.uniform(-jitter_range, jitter_range)

        return max(0.1, delay)

    def should_retry(self, status: int) -> bool:
        return status in self.retryable_statuses


DEFAULT_RETRY_POLICY = HTTPRetryPolicy()
NO_RETRY_POLICY = HTTPRetryPolicy(max_attempts=1)


class HTTPClient:
    """
    HTTP client with retry support and observability.

    One instance is owned by the service container; its session is shared by
    the content fetchers and the webhook sender.
    """

    def __init__(
        self,
        timeout: int = 15,
        concurrency: int = 8,
        user_agent: str | None = None,
        retry_policy: HTTPRetryPolicy | None = None,
    ) -> None:
        """
        Initialize HTTP client.

        Args:
            timeout: Total request timeout seconds.
            concurrency: Max in-flight requests.
            user_agent: Optional UA string.
            retry_policy: Retry configuration. If None, uses default policy
                unless HTTP_RETRY_ENABLED=false.
        """
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._sem = asyncio.Semaphore(concurrency)
        self._session: aiohttp.ClientSession | None = None
        self._user_agent = user_agent or "MASAstronomyBot/1.0"

        if retry_policy is None:
            retry_enabled = os.environ.get("HTTP_RETRY_ENABLED", "true").lower() == "true"
            self._retry_policy = DEFAULT_RETRY_POLICY if retry_enabled else NO_RETRY_POLICY
        else:
            self._retry_policy = retry_policy

        self._request_count = 0
        self._error_count = 0
        self._retry_count = 0

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                raise_for_status=False,
                headers={"User-Agent": self._user_agent},
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session cleanly."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("HTTP session closed")

    def get_health_status(self) -> dict:
        """Counters reported by the hourly heartbeat."""
        return {
            "http_client_status": "ok" if self._session and not self._session.closed else "closed",
            "total_requests": self._request_count,
            "total_errors": self._error_count,
            "total_retries": self._retry_count,
            "retry_enabled": self._retry_policy.max_attempts > 1,
        }

    async def fetch_json(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        retry: bool = True,
    ) -> Any | None:
        """
        GET a URL and decode its JSON body.

        Returns:
            The decoded body on success, None on transient failure or bad JSON.

        Raises:
            NotFoundError: On 404.
            ForbiddenError: On 403.
        """
        policy = self._retry_policy if retry else NO_RETRY_POLICY

        for attempt in range(policy.max_attempts):
            self._request_count += 1

            async with self._sem:
                session = await self.get_session()
                try:
                    logger.debug(f"HTTP GET {url} (attempt {attempt + 1}/{policy.max_attempts})")

                    async with session.get(url, params=params) as resp:
                        status = resp.status

                        if status == 200:
                            try:
                                return await resp.json(content_type=None)
                            except (json.JSONDecodeError, aiohttp.ContentTypeError) as e:
                                logger.warning(f"Invalid JSON from {url}: {e}")
                                self._error_count += 1
                                return None

                        if status == 404:
                            logger.warning(f"HTTP GET {url} -> 404 (not found)")
                            raise NotFoundError(f"Resource not found: {url}")

                        if status == 403:
                            logger.warning(f"HTTP GET {url} -> 403 (forbidden)")
                            self._error_count += 1
                            raise ForbiddenError(f"Access forbidden: {url}")

                        if policy.should_retry(status) and attempt < policy.max_attempts - 1:
                            delay = policy.calculate_delay(attempt)
                            if status == 429:
                                retry_after = resp.headers.get("Retry-After")
                                if retry_after:
                                    try:
                                        delay = min(float(retry_after), 60.0)
                                    except ValueError:
                                        pass
                                logger.info(f"HTTP GET {url} rate limited; waiting {delay:.1f}s")
                            else:
                                logger.info(
                                    f"HTTP GET {url} failed ({status}); "
                                    f"retrying in {delay:.1f}s (attempt {attempt + 1}/{policy.max_attempts})"
                                )
                            self._retry_count += 1
                            await asyncio.sleep(delay)
                            continue

                        logger.warning(f"HTTP {status} for {url}")
                        self._error_count += 1
                        return None

                except (NotFoundError, ForbiddenError):
                    raise
                except (TimeoutError, aiohttp.ClientError) as e:
                    self._error_count += 1
                    if attempt < policy.max_attempts - 1:
                        delay = policy.calculate_delay(attempt)
                        logger.info(f"Request to {url} failed ({e!r}); retrying in {delay:.1f}s")
                        self._retry_count += 1
                        await asyncio.sleep(delay)
                        continue
                    logger.warning(f"Request to {url} failed after {policy.max_attempts} attempts: {e!r}")
                    return None

        return None
