from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    value: Optional[T] = None
    error: Optional[Exception] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


def linear_backoff(base_delay: float) -> Callable[[int], float]:
    """Delay after the n-th failed attempt is ``n * base_delay`` seconds."""
    def backoff(attempt: int) -> float:
        return attempt * base_delay
    return backoff


def with_retries(
    max_attempts: int,
    backoff: Callable[[int], float],
    operation: Callable[[int], T],
    sleep: Callable[[float], None] = time.sleep,
) -> RetryOutcome[T]:
    """Run ``operation(attempt)`` until it returns, at most ``max_attempts`` times.

    Attempts are strictly sequential. The delay from ``backoff`` is applied
    between attempts only, never after the last one. Exceptions raised by the
    operation are captured in the outcome instead of propagating.
    """
    last_error: Optional[Exception] = None
    for attempt in range(1, max(1, max_attempts) + 1):
        try:
            return RetryOutcome(value=operation(attempt), attempts=attempt)
        except Exception as e:
            last_error = e
            logger.warning(
                "retry_attempt_failed",
                attempt=attempt,
                max_attempts=max_attempts,
                error_type=type(e).__name__,
                error=str(e),
            )
            if attempt < max_attempts:
                sleep(backoff(attempt))
    return RetryOutcome(error=last_error, attempts=max(1, max_attempts))
