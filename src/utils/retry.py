"""Timeout and retry-with-backoff wrapping for embedding and store calls."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from src.core.errors import ExternalCallError
from src.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


async def call_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    operation: str,
    failure_cls: type[ExternalCallError],
    timeout: float,
    max_retries: int,
    initial_wait: float,
    max_wait: float,
    retry_on_timeout: bool = True,
) -> T:
    """Run an async call with a per-attempt timeout and exponential backoff.

    Errors already classified as ExternalCallError are raised immediately.
    Anything else is retried up to ``max_retries`` times. The last error is
    wrapped in ``failure_cls``, with ``timed_out`` set when the last attempt
    hit the timeout.

    Args:
        func: Zero-argument callable returning a fresh awaitable per attempt.
        operation: Short name used in log events and error messages.
        failure_cls: Error type raised once retries are exhausted.
        timeout: Seconds allowed per attempt.
        max_retries: Retries after the first attempt.
        initial_wait: First backoff delay in seconds.
        max_wait: Upper bound for a single backoff delay.
        retry_on_timeout: Set False for writes whose outcome is unknown after
            a timeout, so a retry cannot duplicate a row.

    Returns:
        Whatever ``func`` returns.

    Raises:
        ExternalCallError: ``failure_cls`` or an error raised by ``func``.
    """

    def should_retry(exc: BaseException) -> bool:
        if isinstance(exc, ExternalCallError):
            return False
        if isinstance(exc, TimeoutError):
            return retry_on_timeout
        return isinstance(exc, Exception)

    def log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "external_call_retrying",
            operation=operation,
            attempt=retry_state.attempt_number,
            max_attempts=max_retries + 1,
            error_type=type(exc).__name__,
        )

    try:
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_retries + 1),
            wait=wait_exponential_jitter(
                initial=initial_wait, max=max_wait, jitter=initial_wait
            ),
            retry=retry_if_exception(should_retry),
            before_sleep=log_retry,
            reraise=True,
        ):
            with attempt:
                return await asyncio.wait_for(func(), timeout=timeout)

    except ExternalCallError:
        raise
    except TimeoutError as e:
        logger.error("external_call_timed_out", operation=operation, timeout=timeout)
        raise failure_cls(
            f"{operation} timed out after {timeout}s", timed_out=True
        ) from e
    except Exception as e:
        logger.error(
            "external_call_failed",
            operation=operation,
            error_type=type(e).__name__,
            error=str(e),
        )
        raise failure_cls(f"{operation} failed: {e}") from e

    # AsyncRetrying either returns from inside the loop or raises
    raise failure_cls(f"{operation} failed without an attempt")
