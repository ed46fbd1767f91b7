"""Service for executing API calls with automatic retries.

Implements exponential backoff for handling transient errors like
rate limits (429) or temporary server issues (502/503/504, timeouts,
dropped connections). Non-retryable failures and failures that exhaust
the budget are re-raised unchanged so callers keep the original
classification.
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx

from lincli.domain.events.api_events import (
    ApiCallFailed, ApiCallInitiated, ApiCallSucceeded, RetryScheduled
)
from lincli.domain.models.errors import TRANSIENT_MARKERS
from lincli.infrastructure.resilience.backoff import RetryConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Foreign exceptions are classified by message, like ApiError.GENERAL
FOREIGN_TRANSIENT_MARKERS = TRANSIENT_MARKERS + ("429",)

SleepFunc = Callable[[float], Awaitable[Any]]


def is_retryable(error: BaseException) -> bool:
    """Decides whether a failed call may be re-attempted."""
    classifier = getattr(error, "is_retryable", None)
    if callable(classifier):
        return bool(classifier())
    if isinstance(error, (httpx.TimeoutException, httpx.TransportError)):
        return True
    msg = str(error).lower()
    return any(marker in msg for marker in FOREIGN_TRANSIENT_MARKERS)


def retry_after_of(error: BaseException) -> Optional[int]:
    """Server-supplied retry delay carried by the error, if any."""
    value = getattr(error, "retry_after", None)
    return value if isinstance(value, int) else None


def dispatch_event(event: Any) -> None:
    logger.debug(f"EVENT: {event}")


class ApiRetryService:
    """Handles API call execution with bounded retries and backoff."""

    def __init__(
        self,
        retry_config: Optional[RetryConfig] = None,
        sleep: SleepFunc = asyncio.sleep,
        rng: Optional[random.Random] = None,
    ):
        """Initializes the ApiRetryService.

        Args:
            retry_config: Retry budget and backoff shape (defaults if None).
            sleep: Awaitable sleep used between attempts. Only the calling
                task is suspended.
            rng: Random source for backoff jitter.
        """
        self.retry_config = retry_config or RetryConfig()
        self._sleep = sleep
        self._rng = rng
        logger.debug(
            f"ApiRetryService initialized: max_retries={self.retry_config.max_retries}, "
            f"initial_delay={self.retry_config.initial_delay_ms}ms, "
            f"max_delay={self.retry_config.max_delay_ms}ms, base={self.retry_config.exponential_base}"
        )

    async def execute_with_retry(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        endpoint_name: Optional[str] = None,
        **kwargs: Any
    ) -> T:
        """Executes an async function, retrying transient failures.

        Args:
            func: The async function (API call) to execute.
            *args: Positional arguments for the function.
            endpoint_name: Name used in logs and events (defaults to func name).
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the first successful call.

        Raises:
            Exception: The original error, when it is not retryable or the
                retry budget is exhausted.
        """
        config = self.retry_config
        effective_endpoint = endpoint_name or getattr(func, "__name__", "call")

        for attempt in range(config.max_retries + 1):
            dispatch_event(ApiCallInitiated(endpoint=effective_endpoint, attempt_number=attempt + 1))
            start_time = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                last_attempt = attempt >= config.max_retries
                if last_attempt or not is_retryable(e):
                    if last_attempt and config.max_retries > 0:
                        logger.error(
                            f"Max retries ({config.max_retries}) reached for {effective_endpoint}. Last error: {e}"
                        )
                    dispatch_event(ApiCallFailed(
                        endpoint=effective_endpoint, error_type=type(e).__name__,
                        error_message=str(e), attempts=attempt + 1,
                    ))
                    raise

                retry_after = retry_after_of(e)
                delay = config.delay_for_attempt(attempt, retry_after, rng=self._rng)
                logger.warning(
                    f"Attempt {attempt + 1} failed: {e}. Retrying in {delay:.2f}s..."
                )
                dispatch_event(RetryScheduled(
                    endpoint=effective_endpoint, attempt_number=attempt + 1,
                    delay_seconds=delay, retry_after=retry_after,
                ))
                await self._sleep(delay)
                continue

            latency_ms = (time.perf_counter() - start_time) * 1000
            dispatch_event(ApiCallSucceeded(
                endpoint=effective_endpoint, latency_ms=latency_ms, attempt_number=attempt + 1,
            ))
            return result

        # max_retries >= 0 is enforced by RetryConfig, so the loop always returns or raises
        raise AssertionError("retry loop exited without a result")


async def with_retry(config: RetryConfig, operation: Callable[[], Awaitable[T]]) -> T:
    """Runs a zero-argument coroutine factory under `config`."""
    return await ApiRetryService(config).execute_with_retry(operation)
