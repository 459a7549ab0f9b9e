"""Retry-with-backoff for single logical requests, driven by tenacity.

:func:`perform_with_retry` re-issues a request while the policy allows it.
Each call threads its own RequestAttempt, so attempt counts are never shared
between concurrent requests.
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    stop_when_event_set,
)

from syncro.domain.config.retry import RetryConfig
from syncro.infrastructure.http_client import TransportFailure

T = TypeVar("T")


def default_delay(attempt: int) -> float:
    """2, 4, 8... seconds for retry 1, 2, 3..."""
    return float(2**attempt)


def is_retryable_failure(failure: TransportFailure) -> bool:
    """Retry when no response arrived, on 429 and on 5xx."""
    status = failure.status
    if status is None:
        return True
    return status == 429 or 500 <= status <= 599


@dataclass(frozen=True)
class RetryPolicy:
    """Immutable retry policy shared read-only by every request of a client.

    Attributes:
        max_retries: Reissues allowed after the first attempt (0 = single attempt)
        delay_fn: Maps the 1-based retry number to a delay in seconds
        retryable: Decides whether a failure is worth another attempt
    """

    max_retries: int = 3
    delay_fn: Callable[[int], float] = default_delay
    retryable: Callable[[TransportFailure], bool] = is_retryable_failure

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")


@dataclass(frozen=True)
class RequestAttempt:
    """State of one logical request's retry chain.

    Attributes:
        count: Failed attempts so far; after a failure this is the 1-based
            number of the retry about to run
        last_failure: Failure of the most recent attempt
    """

    count: int = 0
    last_failure: Optional[TransportFailure] = None

    def failed(self, failure: TransportFailure) -> "RequestAttempt":
        return RequestAttempt(self.count + 1, failure)


def _policy_condition(policy: RetryPolicy) -> Callable[[BaseException], bool]:
    def _condition(exception: BaseException) -> bool:
        return isinstance(exception, TransportFailure) and policy.retryable(exception)

    return _condition


async def perform_with_retry(
    issue_request: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    before_sleep: Optional[Callable[[RetryCallState], None]] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> T:
    """Call ``issue_request`` until it succeeds or the policy gives up.

    Args:
        issue_request: Zero-argument callable returning an awaitable that
            performs one network attempt
        policy: Retry policy
        sleep: Awaitable sleep used between attempts
        before_sleep: Optional hook called before each backoff wait
        cancel_event: Once set, no further attempt is issued and the last
            failure is raised

    Returns:
        The first successful response

    Raises:
        TransportFailure: The failure of the last attempt, unwrapped
        Exception: Anything else ``issue_request`` raises, without retrying
    """
    attempt = RequestAttempt()

    async def _attempt() -> T:
        nonlocal attempt
        cancelled = cancel_event is not None and cancel_event.is_set()
        if cancelled and attempt.last_failure is not None:
            raise attempt.last_failure
        try:
            return await issue_request()
        except TransportFailure as e:
            attempt = attempt.failed(e)
            raise

    def _wait(retry_state: RetryCallState) -> float:
        return max(0.0, float(policy.delay_fn(attempt.count)))

    stop = stop_after_attempt(policy.max_retries + 1)
    if cancel_event is not None:
        stop = stop | stop_when_event_set(cancel_event)

    retrying = AsyncRetrying(
        stop=stop,
        wait=_wait,
        retry=retry_if_exception(_policy_condition(policy)),
        reraise=True,
        sleep=sleep,
        before_sleep=before_sleep,
    )
    return await retrying(_attempt)


def retry_policy_from_config(config: RetryConfig) -> RetryPolicy:
    """Build an exponential-backoff policy from validated config."""

    def _delay(attempt: int) -> float:
        delay = min(config.base_delay * config.backoff_multiplier**attempt, config.max_delay)
        if config.jitter > 0:
            jitter_amount = delay * config.jitter
            delay += random.uniform(-jitter_amount, jitter_amount)
        return delay

    return RetryPolicy(max_retries=config.max_retries, delay_fn=_delay)
