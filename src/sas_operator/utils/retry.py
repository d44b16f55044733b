"""Bounded exponential backoff for remote calls."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from tenacity import RetryCallState, RetryError, Retrying, retry_if_exception, stop_after_attempt

from ..constants import (
    RETRY_INITIAL_DELAY_SECONDS,
    RETRY_MAX_ATTEMPTS,
    RETRY_MAX_DELAY_SECONDS,
    RETRY_MULTIPLIER,
)
from .errors import sanitize_exception

logger = logging.getLogger(__name__)

_T = TypeVar("_T")


def full_jitter(delay: float) -> float:
    """Pick a random wait in ``[0, delay]``."""
    return random.uniform(0, delay)


def no_jitter(delay: float) -> float:
    return delay


def retry_everything(error: BaseException) -> bool:
    return True


class RetryExhaustedError(Exception):
    """Raised when every attempt allowed by a RetryPolicy failed.

    ``last_error`` is the exception raised by the final attempt.
    """

    def __init__(self, attempts: int, last_error: BaseException):
        super().__init__(f"gave up after {attempts} attempt(s): {sanitize_exception(last_error)}")
        self.attempts = attempts
        self.last_error = last_error


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff with a hard attempt ceiling.

    Waits start at ``initial_delay`` and are multiplied by ``multiplier``
    after every failed attempt, capped at ``max_delay`` and passed through
    ``jitter``. Errors for which ``retryable`` returns False stop the loop
    immediately.
    """

    initial_delay: float = RETRY_INITIAL_DELAY_SECONDS
    multiplier: float = RETRY_MULTIPLIER
    max_delay: float = RETRY_MAX_DELAY_SECONDS
    max_attempts: int = RETRY_MAX_ATTEMPTS
    jitter: Callable[[float], float] = full_jitter
    retryable: Callable[[BaseException], bool] = retry_everything
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def delay_for(self, attempt: int) -> float:
        """Un-jittered wait after the given (1-based) failed attempt."""
        if attempt < 1:
            raise ValueError("attempt numbers start at 1")
        return min(self.initial_delay * self.multiplier ** (attempt - 1), self.max_delay)

    def delays(self) -> list[float]:
        """Un-jittered waits between attempts; one fewer than max_attempts."""
        return [self.delay_for(n) for n in range(1, self.max_attempts)]

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.jitter(self.delay_for(retry_state.attempt_number))

    def _log_attempt(self, retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            f"Attempt {retry_state.attempt_number}/{self.max_attempts} failed; "
            f"retrying: {sanitize_exception(error) if error else 'unknown error'}"
        )

    def call(self, fn: Callable[[], _T]) -> _T:
        """Run ``fn`` until it succeeds or the policy gives up.

        Every attempt calls ``fn`` from scratch; nothing is carried over.

        Raises:
            RetryExhaustedError: With the last exception once attempts run out,
                or immediately for a non-retryable error
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._wait,
            retry=retry_if_exception(self.retryable),
            sleep=self.sleep,
            before_sleep=self._log_attempt,
            reraise=False,
        )
        attempts = 0
        try:
            for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    return fn()
        except RetryError as e:
            last = e.last_attempt
            raise RetryExhaustedError(last.attempt_number, last.exception()) from last.exception()
        except Exception as e:
            # Non-retryable errors escape tenacity unwrapped
            raise RetryExhaustedError(attempts, e) from e
        raise AssertionError("unreachable")
