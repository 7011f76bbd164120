"""Exponential backoff schedule and the poll loop that consumes it."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, TypeVar

import structlog
from tenacity import AsyncRetrying, RetryCallState, RetryError, retry_if_result, stop_after_delay

from cfchain.core.errors import ConfigurationError, PollTimeoutError

logger = structlog.get_logger()

T = TypeVar("T")

# 2**64 seconds is already far past any ceiling.
_MAX_EXPONENT = 64


@dataclass(frozen=True)
class BackoffSchedule:
    """
    Delay policy for a single retry sequence.

    Delays start at ``min_delay`` and double on each attempt, capped at
    ``max_delay``. ``timeout`` bounds the whole sequence, measured from the
    first attempt; ``timeout <= 0`` allows no retries at all.
    """

    min_delay: float
    max_delay: float
    timeout: float

    def __post_init__(self) -> None:
        if self.min_delay < 0 or self.max_delay < 0:
            raise ConfigurationError(
                "backoff delays must not be negative",
                details={"min_delay": self.min_delay, "max_delay": self.max_delay},
            )
        if self.min_delay > self.max_delay:
            raise ConfigurationError(
                "backoff min_delay exceeds max_delay",
                details={"min_delay": self.min_delay, "max_delay": self.max_delay},
            )

    def delay(self, attempt: int) -> float:
        """Delay following the 1-based ``attempt``."""
        exponent = min(max(attempt, 1) - 1, _MAX_EXPONENT)
        return min(self.min_delay * 2**exponent, self.max_delay)

    def delays(self) -> Iterator[float]:
        current = self.min_delay
        while True:
            yield current
            current = min(current * 2, self.max_delay)

    def wait(self, retry_state: RetryCallState) -> float:
        """tenacity wait strategy; never sleeps past the deadline."""
        remaining = self.timeout - retry_state.seconds_since_start
        return max(0.0, min(self.delay(retry_state.attempt_number), remaining))


def _log_retry(retry_state: RetryCallState) -> None:
    logger.debug(
        "poll_retry",
        attempt=retry_state.attempt_number,
        next_delay=retry_state.next_action.sleep if retry_state.next_action else None,
        elapsed=round(retry_state.seconds_since_start or 0.0, 3),
    )


async def poll_until(
    read: Callable[[], Awaitable[T]],
    predicate: Callable[[T], bool],
    schedule: BackoffSchedule,
    *,
    description: str = "poll",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> T:
    """
    Repeat ``read`` until ``predicate`` accepts its result.

    ``read`` is any zero-argument callable returning an awaitable; a lambda
    wrapping a coroutine call works as well as an ``async def``.

    Only unmet predicates are retried: an exception raised by ``read``
    propagates on the spot. When the deadline passes without a match a
    ``PollTimeoutError`` is raised rather than returning the last value.
    """
    retrying = AsyncRetrying(
        retry=retry_if_result(lambda value: not predicate(value)),
        wait=schedule.wait,
        stop=stop_after_delay(max(schedule.timeout, 0.0)),
        sleep=sleep,
        before_sleep=_log_retry,
    )

    async def attempt() -> T:
        return await read()

    try:
        return await retrying(attempt)
    except RetryError as exc:
        attempts = exc.last_attempt.attempt_number
        logger.warning(
            "poll_timeout",
            description=description,
            attempts=attempts,
            timeout=schedule.timeout,
        )
        raise PollTimeoutError(
            f"{description} did not complete within {schedule.timeout}s",
            details={"attempts": attempts, "timeout": schedule.timeout},
        ) from exc
