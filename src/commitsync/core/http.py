"""
Retrying HTTP sends for reporters.

Only transient failures are retried, and only within one report: the
reconciler itself never retries, so a report that still fails leaves
known state untouched and the next run recomputes the same delta.

Example:
    >>> import httpx
    >>> from commitsync.core.config import RemoteConfig
    >>> from commitsync.core.http import RetryConfig, send_with_retry
    >>>
    >>> retry = RetryConfig.from_remote(RemoteConfig(max_retries=2))
    >>> with httpx.Client(base_url="https://api.example.com") as client:
    ...     response = send_with_retry(client, "POST", "/repos/abc/commits", retry, json={})
"""

import logging
import random
import time
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field

from commitsync.core.config.models import RemoteConfig

logger = logging.getLogger(__name__)


class RetryConfig(BaseModel):
    """Backoff for one report: `backoff * 2**attempt`, spread by `jitter`."""

    model_config = ConfigDict(frozen=True)

    max_retries: int = Field(default=3, ge=0)
    backoff: float = Field(default=1.0, gt=0.0, description="Seconds before the first retry")
    jitter: float = Field(
        default=0.2, ge=0.0, le=1.0, description="Random spread as a fraction of the delay"
    )

    @classmethod
    def from_remote(cls, remote: RemoteConfig) -> "RetryConfig":
        return cls(max_retries=remote.max_retries, backoff=remote.retry_backoff)

    def delay(self, attempt: int) -> float:
        """Seconds to wait before retry number `attempt` (0-indexed)."""
        delay = self.backoff * 2**attempt
        if self.jitter:
            spread = delay * self.jitter
            delay += random.uniform(-spread, spread)
        return max(0.0, delay)


def is_retryable_error(exception: Exception) -> bool:
    """
    True for 429, 5xx and transport failures (timeouts, refused
    connections). Other 4xx responses mean the request itself is wrong.
    """
    if isinstance(exception, httpx.HTTPStatusError):
        status = exception.response.status_code
        return status == 429 or 500 <= status < 600
    return isinstance(exception, httpx.RequestError)


def send_with_retry(
    client: httpx.Client,
    method: str,
    url: str,
    retry: RetryConfig | None = None,
    *,
    sleep: Callable[[float], None] | None = None,
    **kwargs: Any,
) -> httpx.Response:
    """
    Send a request, retrying transient failures.

    Args:
        client: httpx client to send with
        method: HTTP method
        url: URL or path relative to the client's base_url
        retry: Backoff settings (defaults to RetryConfig())
        sleep: Sleep function (defaults to time.sleep)
        **kwargs: Passed through to client.request()

    Returns:
        The first successful response

    Raises:
        httpx.HTTPStatusError: On a non-retryable status, or once retries run out
        httpx.RequestError: Once retries run out on transport errors
    """
    retry = retry or RetryConfig()
    attempt = 0
    while True:
        try:
            response = client.request(method, url, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPError as e:
            if not is_retryable_error(e) or attempt >= retry.max_retries:
                logger.debug("%s %s failed after %d attempt(s): %s", method, url, attempt + 1, e)
                raise
            delay = retry.delay(attempt)
            attempt += 1
            logger.info(
                "%s %s: %s; retry %d/%d in %.2fs",
                method,
                url,
                e,
                attempt,
                retry.max_retries,
                delay,
            )
            (sleep or time.sleep)(delay)


__all__ = [
    "RetryConfig",
    "is_retryable_error",
    "send_with_retry",
]
