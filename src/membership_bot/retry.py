"""Bounded exponential-backoff retry for calls to external services.

Every call to Discord, Google Sheets or Mailjet goes through
``RetryExecutor.execute`` with a ``RetryPolicy``. The executor is a thin layer
over tenacity: the policy decides how many attempts, how long to back off and
which failures are worth another try, and the executor owns test-mode
behaviour (zero delay, same attempt counts).

Delays grow as ``delay * multiplier ** (n - 1)`` before retry ``n``, so the
``NETWORK`` preset (3 retries, 1 s) sleeps 1 s, 2 s and 4 s. Runtime policies
are derived from it with the retry count and base delay from settings.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryPredicate = Callable[[BaseException], bool]
RetryObserver = Callable[[BaseException, int], Awaitable[None] | None]


@dataclass(frozen=True)
class RetryPolicy:
    """How often and how patiently to retry a failing call.

    Attributes:
        retries: Retries after the first attempt. ``0`` means a single attempt.
        delay: Base delay in seconds before the first retry.
        multiplier: Growth factor applied to the delay for each further retry.
        should_retry: Optional predicate; returning False stops retrying.
        on_retry: Optional observer called with (error, attempt) before each retry.
    """

    retries: int = 3
    delay: float = 1.0
    multiplier: float = 2.0
    should_retry: RetryPredicate | None = None
    on_retry: RetryObserver | None = None

    def with_observer(self, on_retry: RetryObserver) -> "RetryPolicy":
        """Return a copy of this policy with a different retry observer."""
        return replace(self, on_retry=on_retry)


def total_delay(policy: RetryPolicy) -> float:
    """Worst-case cumulative backoff in seconds for a policy. Pure function."""
    return sum(policy.delay * policy.multiplier**i for i in range(policy.retries))


def worst_case_duration(policy: RetryPolicy, attempt_timeout: float) -> float:
    """Longest a call can take: every attempt timing out plus all backoff. Pure function."""
    return (policy.retries + 1) * attempt_timeout + total_delay(policy)


def is_transient_http_error(error: BaseException) -> bool:
    """Determine if an httpx failure is transient and worth retrying.

    Returns True for network errors, timeouts, rate limits (429) and server
    errors (5xx). Returns False for every other client error and for
    exceptions that did not come from httpx.
    """
    if isinstance(error, httpx.TransportError):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
        return status == 429 or status >= 500
    return False


NETWORK = RetryPolicy(retries=3, delay=1.0, should_retry=is_transient_http_error)


class RetryExecutor:
    """Run async callables under a ``RetryPolicy``.

    Args:
        test_mode: Collapse every backoff to zero while keeping attempt counts.
        sleep: Async sleep function, injectable so tests can observe delays.
    """

    def __init__(
        self,
        test_mode: bool = False,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.test_mode = test_mode
        self._sleep = sleep

    async def execute(self, fn: Callable[[], Awaitable[T]], policy: RetryPolicy) -> T:
        """Call ``fn`` until it succeeds, the policy vetoes, or retries run out.

        The last exception is re-raised unchanged once no retry is left.
        """
        retrying = AsyncRetrying(
            stop=stop_after_attempt(policy.retries + 1),
            wait=self._wait(policy),
            retry=retry_if_exception(self._predicate(policy)),
            before_sleep=self._before_sleep(policy),
            sleep=self._sleep,
            reraise=True,
        )
        return await retrying(fn)

    def _wait(self, policy: RetryPolicy):
        if self.test_mode:
            return wait_none()
        return wait_exponential(multiplier=policy.delay, exp_base=policy.multiplier, min=0)

    @staticmethod
    def _predicate(policy: RetryPolicy) -> RetryPredicate:
        def should_retry(error: BaseException) -> bool:
            if not isinstance(error, Exception):
                return False
            if policy.should_retry is None:
                return True
            return policy.should_retry(error)

        return should_retry

    @staticmethod
    def _before_sleep(policy: RetryPolicy):
        async def before_sleep(retry_state: RetryCallState) -> None:
            error = retry_state.outcome.exception()
            attempt = retry_state.attempt_number
            logger.warning("Attempt %d failed, retrying: %s", attempt, error)
            if policy.on_retry is None:
                return
            try:
                result = policy.on_retry(error, attempt)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.warning("Retry observer failed", exc_info=True)

        return before_sleep
