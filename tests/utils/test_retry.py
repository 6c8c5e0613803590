"""Unit tests for timeout and retry wrapping."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from src.core.errors import EmbeddingFailure, StoreWriteFailure
from src.utils.retry import call_with_retry

RETRY_KWARGS = {
    "operation": "test_call",
    "timeout": 1.0,
    "max_retries": 2,
    "initial_wait": 0,
    "max_wait": 0,
}


@pytest.mark.unit
class TestCallWithRetry:
    """Test suite for call_with_retry."""

    @pytest.mark.asyncio
    async def test_returns_result(self) -> None:
        """Test that a successful call returns its value after one attempt."""
        func = AsyncMock(return_value="ok")

        result = await call_with_retry(func, failure_cls=EmbeddingFailure, **RETRY_KWARGS)

        assert result == "ok"
        func.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_retries_then_succeeds(self) -> None:
        """Test that transient errors are retried."""
        func = AsyncMock(side_effect=[ConnectionError("reset"), ConnectionError("reset"), 7])

        result = await call_with_retry(func, failure_cls=EmbeddingFailure, **RETRY_KWARGS)

        assert result == 7
        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_wraps_last_error(self) -> None:
        """Test that exhausted retries raise failure_cls chained to the cause."""
        func = AsyncMock(side_effect=ValueError("bad payload"))

        with pytest.raises(StoreWriteFailure, match="test_call failed: bad payload") as exc_info:
            await call_with_retry(func, failure_cls=StoreWriteFailure, **RETRY_KWARGS)

        assert isinstance(exc_info.value.__cause__, ValueError)
        assert exc_info.value.timed_out is False
        assert func.await_count == 3

    @pytest.mark.asyncio
    async def test_classified_errors_not_retried(self) -> None:
        """Test that errors already classified pass through on the first attempt."""
        original = EmbeddingFailure("wrong dimensions")
        func = AsyncMock(side_effect=original)

        with pytest.raises(EmbeddingFailure) as exc_info:
            await call_with_retry(func, failure_cls=EmbeddingFailure, **RETRY_KWARGS)

        assert exc_info.value is original
        func.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timeout_sets_flag(self) -> None:
        """Test that timeouts are retried and reported as timed out."""
        calls = 0

        async def slow():
            nonlocal calls
            calls += 1
            await asyncio.sleep(1)

        kwargs = {**RETRY_KWARGS, "timeout": 0.01}
        with pytest.raises(EmbeddingFailure, match="timed out") as exc_info:
            await call_with_retry(slow, failure_cls=EmbeddingFailure, **kwargs)

        assert exc_info.value.timed_out is True
        assert calls == 3

    @pytest.mark.asyncio
    async def test_timeout_not_retried_when_disabled(self) -> None:
        """Test that retry_on_timeout=False gives up after the first timeout."""
        calls = 0

        async def slow():
            nonlocal calls
            calls += 1
            await asyncio.sleep(1)

        kwargs = {**RETRY_KWARGS, "timeout": 0.01}
        with pytest.raises(StoreWriteFailure) as exc_info:
            await call_with_retry(
                slow, failure_cls=StoreWriteFailure, retry_on_timeout=False, **kwargs
            )

        assert exc_info.value.timed_out is True
        assert calls == 1
