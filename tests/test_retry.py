# tests/test_retry.py
"""Tests for retry with exponential backoff."""

from unittest.mock import AsyncMock, patch

import pytest

from vaultrag.exceptions import ProviderError, ProviderErrorKind, is_rate_limit_error
from vaultrag.retry import RetryPolicy, retry_async


class HTTPStatusError(Exception):
    """Foreign exception carrying an HTTP status, as raised by some SDKs."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"HTTP {status_code}")
        self.status_code = status_code


class TestIsRateLimitError:
    def test_rate_limited_kind(self):
        assert is_rate_limit_error(ProviderError("slow down", kind=ProviderErrorKind.RATE_LIMITED))

    def test_status_429(self):
        assert is_rate_limit_error(ProviderError("slow down", status_code=429))
        assert is_rate_limit_error(HTTPStatusError(429))

    def test_other_errors(self):
        assert not is_rate_limit_error(ProviderError("boom", status_code=500))
        assert not is_rate_limit_error(
            ProviderError("bad key", kind=ProviderErrorKind.INVALID_CREDENTIALS)
        )
        assert not is_rate_limit_error(ValueError("nope"))


class TestRetryPolicy:
    def test_defaults(self):
        policy = RetryPolicy()
        assert policy.max_attempts == 8
        assert policy.base_delay == 2.0
        assert policy.multiplier == 2.0
        assert policy.max_delay == 60.0

    def test_delays_grow_and_cap(self):
        policy = RetryPolicy()
        delays = [policy.delay_for(attempt) for attempt in range(1, 8)]
        assert delays == [2.0, 4.0, 8.0, 16.0, 32.0, 60.0, 60.0]

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_attempts=0)


class TestRetryAsync:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        operation = AsyncMock(return_value="ok")
        assert await retry_async(operation, RetryPolicy()) == "ok"
        operation.assert_awaited_once()

    @pytest.mark.asyncio
    @patch("vaultrag.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_retries_rate_limits_then_succeeds(self, mock_sleep):
        error = ProviderError("429", kind=ProviderErrorKind.RATE_LIMITED)
        operation = AsyncMock(side_effect=[error, error, error, "done"])
        seen = []

        result = await retry_async(
            operation,
            RetryPolicy(),
            on_retry=lambda e, attempt, delay: seen.append((attempt, delay)),
        )

        assert result == "done"
        assert operation.await_count == 4
        assert seen == [(1, 2.0), (2, 4.0), (3, 8.0)]
        assert [c.args[0] for c in mock_sleep.await_args_list] == [2.0, 4.0, 8.0]

    @pytest.mark.asyncio
    @patch("vaultrag.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_gives_up_after_max_attempts(self, mock_sleep):
        error = ProviderError("429", status_code=429)
        operation = AsyncMock(side_effect=error)

        with pytest.raises(ProviderError):
            await retry_async(operation, RetryPolicy(max_attempts=3))

        assert operation.await_count == 3
        assert mock_sleep.await_count == 2

    @pytest.mark.asyncio
    @patch("vaultrag.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_non_retryable_error_is_raised_immediately(self, mock_sleep):
        operation = AsyncMock(side_effect=ProviderError("server error", status_code=500))

        with pytest.raises(ProviderError, match="server error"):
            await retry_async(operation, RetryPolicy())

        operation.assert_awaited_once()
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_custom_predicate(self):
        operation = AsyncMock(side_effect=[KeyError("x"), 5])
        policy = RetryPolicy(base_delay=0.0, is_retryable=lambda e: isinstance(e, KeyError))

        assert await retry_async(operation, policy) == 5
