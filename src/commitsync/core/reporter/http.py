"""
HTTP reporter for a commit-tracking API.

Endpoints (relative to the configured base URL):
- POST /repos/{identity}/commits          {"commits": [<commit>, ...]}
- POST /repos/{identity}/commits/delete   {"identities": ["...", ...]}

Added commits are sent in oldest-first chunks, then deletions. Transient
failures are retried here with exponential backoff; once retries are
exhausted the whole delta is reported as failed. Chunks already accepted
before a failure will be resent on the next run, so the remote must
treat repeated commit identities as idempotent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from typing import Any, TypeVar

import httpx

from commitsync.core.commits.models import Commit
from commitsync.core.exceptions import TransientReportError
from commitsync.core.http import RetryConfig, is_retryable_error, send_with_retry
from commitsync.core.reporter.backend import ReportResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most `size` items, preserving order."""
    if size < 1:
        raise ValueError("chunk size must be >= 1")
    for start in range(0, len(items), size):
        yield items[start : start + size]


class HttpReporter:
    """
    Reporter that posts deltas to a remote HTTP API.

    Example:
        >>> reporter = HttpReporter("https://api.example.com/v1", token="s3cret")
        >>> result = reporter.report(repo_id, delta.added, delta.deleted)
        >>> result.success
        True
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        timeout: float = 30.0,
        chunk_size: int = 500,
        retry: RetryConfig | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize the reporter.

        Args:
            base_url: API root URL
            token: Bearer token sent in the Authorization header
            timeout: Per-request timeout in seconds
            chunk_size: Maximum commits per request
            retry: Retry behavior for transient failures
            client: Pre-built httpx client (tests pass one with a mock transport)
        """
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        self.base_url = base_url.rstrip("/")
        self.chunk_size = chunk_size
        self.retry = retry or RetryConfig()

        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        if client is None:
            client = httpx.Client(base_url=self.base_url, headers=headers, timeout=timeout)
        else:
            client.headers.update(headers)
        self._client = client

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpReporter:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _post(self, path: str, payload: dict[str, Any]) -> None:
        send_with_retry(self._client, "POST", path, self.retry, json=payload)

    def report(
        self,
        repo_identity: str,
        added: Sequence[Commit],
        deleted: Sequence[str],
    ) -> ReportResult:
        """
        Post the delta for one repository.

        Returns:
            Successful ReportResult, or a failed one on a non-transient
            rejection (e.g. 4xx)

        Raises:
            TransientReportError: If the remote stayed unreachable after retries
        """
        added_sent = 0
        deleted_sent = 0
        base = f"/repos/{repo_identity}/commits"

        try:
            for chunk in chunked(added, self.chunk_size):
                self._post(base, {"commits": [c.to_payload() for c in chunk]})
                added_sent += len(chunk)
                logger.debug("Posted %d added commits for %s", len(chunk), repo_identity[:12])

            for id_chunk in chunked(deleted, self.chunk_size):
                self._post(f"{base}/delete", {"identities": list(id_chunk)})
                deleted_sent += len(id_chunk)
                logger.debug("Posted %d deletions for %s", len(id_chunk), repo_identity[:12])

        except httpx.HTTPError as e:
            status_code = (
                e.response.status_code if isinstance(e, httpx.HTTPStatusError) else None
            )
            if is_retryable_error(e):
                raise TransientReportError(
                    f"Remote unreachable for {repo_identity[:12]}: {e}",
                    status_code=status_code,
                ) from e
            logger.warning("Remote rejected delta for %s: %s", repo_identity[:12], e)
            return ReportResult.failed(
                f"Remote rejected delta: {e}",
                added_sent=added_sent,
                deleted_sent=deleted_sent,
            )

        return ReportResult.ok(added_sent=added_sent, deleted_sent=deleted_sent)
