"""
Tests for the HTTP reporter and retry helpers.

Uses httpx.MockTransport so no network is touched; sleeping between
retries is patched out.
"""

import json
from unittest.mock import patch

import httpx
import pytest
from pydantic import ValidationError

from commitsync.core.config import RemoteConfig
from commitsync.core.exceptions import TransientReportError
from commitsync.core.http import RetryConfig, is_retryable_error, send_with_retry
from commitsync.core.reporter.backend import RemoteReporter
from commitsync.core.reporter.http import HttpReporter, chunked

REPO = "r" * 64
BASE_URL = "https://api.example.com/v1"
FAST_RETRY = RetryConfig(max_retries=2, backoff=0.01, jitter=0.0)


def make_reporter(handler, **kwargs):
    client = httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    kwargs.setdefault("retry", FAST_RETRY)
    return HttpReporter(BASE_URL, client=client, **kwargs)


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("commitsync.core.http.time.sleep") as mock_sleep:
        yield mock_sleep


class TestChunked:
    def test_preserves_order(self):
        assert [list(c) for c in chunked([1, 2, 3, 4, 5], 2)] == [[1, 2], [3, 4], [5]]

    def test_empty(self):
        assert list(chunked([], 3)) == []

    def test_rejects_zero(self):
        with pytest.raises(ValueError):
            list(chunked([1], 0))


class TestHttpReporter:
    def test_satisfies_protocol(self):
        reporter = make_reporter(lambda request: httpx.Response(200))
        assert isinstance(reporter, RemoteReporter)

    def test_posts_added_then_deleted(self, linear_history):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"ok": True})

        commits = linear_history(2)
        result = make_reporter(handler).report(REPO, commits, ["d" * 64])

        assert result.success
        assert result.added_sent == 2
        assert result.deleted_sent == 1
        assert [r.url.path for r in requests] == [
            f"/v1/repos/{REPO}/commits",
            f"/v1/repos/{REPO}/commits/delete",
        ]
        body = json.loads(requests[0].content)
        assert [c["identity"] for c in body["commits"]] == [c.identity for c in commits]
        assert json.loads(requests[1].content) == {"identities": ["d" * 64]}

    def test_chunks_keep_oldest_first(self, linear_history):
        sent = []

        def handler(request):
            if request.url.path.endswith("/commits"):
                sent.append([c["identity"] for c in json.loads(request.content)["commits"]])
            return httpx.Response(200)

        commits = linear_history(5)
        make_reporter(handler, chunk_size=2).report(REPO, commits, [])

        assert [len(batch) for batch in sent] == [2, 2, 1]
        assert [i for batch in sent for i in batch] == [c.identity for c in commits]

    def test_nothing_to_send_makes_no_requests(self):
        calls = []
        result = make_reporter(lambda r: calls.append(r) or httpx.Response(200)).report(
            REPO, [], []
        )
        assert result.success
        assert calls == []

    def test_bearer_token_header(self, linear_history):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200)

        make_reporter(handler, token="s3cret").report(REPO, linear_history(1), [])
        assert seen["auth"] == "Bearer s3cret"

    def test_client_error_returns_failed_result(self, linear_history):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(422, json={"error": "bad commit"})

        result = make_reporter(handler).report(REPO, linear_history(2), [])

        assert not result.success
        assert "422" in result.message
        assert len(calls) == 1

    def test_server_error_retried_then_raises_transient(self, linear_history, no_sleep):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        with pytest.raises(TransientReportError) as exc_info:
            make_reporter(handler).report(REPO, linear_history(1), [])

        assert exc_info.value.status_code == 503
        assert len(calls) == FAST_RETRY.max_retries + 1
        assert no_sleep.call_count == FAST_RETRY.max_retries

    def test_recovers_after_transient_error(self, linear_history):
        responses = iter([httpx.Response(502), httpx.Response(200)])

        result = make_reporter(lambda request: next(responses)).report(
            REPO, linear_history(1), []
        )
        assert result.success

    def test_connection_error_raises_transient(self, linear_history):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransientReportError) as exc_info:
            make_reporter(handler).report(REPO, linear_history(1), [])
        assert exc_info.value.status_code is None

    def test_failed_result_counts_partial_progress(self, linear_history):
        count = {"n": 0}

        def handler(request):
            count["n"] += 1
            return httpx.Response(200) if count["n"] == 1 else httpx.Response(400)

        result = make_reporter(handler, chunk_size=1).report(REPO, linear_history(3), [])
        assert not result.success
        assert result.added_sent == 1

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            HttpReporter(BASE_URL, chunk_size=0)

    def test_context_manager_closes_client(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        with HttpReporter(BASE_URL, client=client):
            pass
        assert client.is_closed


class TestRetryHelpers:
    @pytest.mark.parametrize(
        "field, value", [("max_retries", -1), ("backoff", 0), ("jitter", 1.5)]
    )
    def test_retry_config_validation(self, field, value):
        with pytest.raises(ValidationError, match=field):
            RetryConfig(**{field: value})

    def test_delay_doubles_without_jitter(self):
        config = RetryConfig(backoff=1.0, jitter=0.0)
        assert [config.delay(i) for i in range(3)] == [1.0, 2.0, 4.0]

    def test_jitter_stays_in_range(self):
        config = RetryConfig(backoff=1.0, jitter=0.2)
        for _ in range(20):
            assert 0.8 <= config.delay(0) <= 1.2

    def test_from_remote_config(self):
        remote = RemoteConfig(max_retries=5, retry_backoff=0.25)
        config = RetryConfig.from_remote(remote)
        assert (config.max_retries, config.backoff) == (5, 0.25)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            FAST_RETRY.max_retries = 10

    @pytest.mark.parametrize(
        "status, retryable",
        [(429, True), (500, True), (503, True), (400, False), (404, False), (422, False)],
    )
    def test_status_retryability(self, status, retryable):
        request = httpx.Request("POST", "https://example.com")
        response = httpx.Response(status, request=request)
        error = httpx.HTTPStatusError("err", request=request, response=response)
        assert is_retryable_error(error) is retryable

    def test_timeout_is_retryable(self):
        assert is_retryable_error(httpx.ReadTimeout("slow"))

    def test_non_http_error_not_retryable(self):
        assert not is_retryable_error(ValueError("boom"))

    def test_send_with_retry_uses_injected_sleep(self):
        responses = iter([httpx.Response(500), httpx.Response(200, json={"ok": True})])
        client = httpx.Client(transport=httpx.MockTransport(lambda r: next(responses)))
        delays = []

        response = send_with_retry(
            client,
            "GET",
            "https://example.com/x",
            RetryConfig(max_retries=1, backoff=0.5, jitter=0.0),
            sleep=delays.append,
        )

        assert response.json() == {"ok": True}
        assert delays == [0.5]
