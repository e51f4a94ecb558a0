"""Retry logic with linearly growing backoff.

This module provides:
- LinearBackoff: Delay schedule 10, 15, 20, ... capped at 300 seconds
- retry_until_success: Run an attempt until it reports success

There is intentionally no attempt limit. A push that keeps failing is
retried until it succeeds or the process is terminated.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Default retry configuration
DEFAULT_INITIAL_DELAY = 10.0  # seconds
DEFAULT_DELAY_INCREMENT = 5.0  # seconds
DEFAULT_MAX_DELAY = 300.0  # seconds


@dataclass(frozen=True)
class LinearBackoff:
    """Delay schedule between failed attempts.

    Attributes:
        initial: Delay after the first failure.
        increment: Amount added after each further failure.
        maximum: Upper bound for any delay.
    """

    initial: float = DEFAULT_INITIAL_DELAY
    increment: float = DEFAULT_DELAY_INCREMENT
    maximum: float = DEFAULT_MAX_DELAY

    def delay(self, failures: int) -> float:
        """Return the delay to wait after ``failures`` consecutive failures."""
        if failures < 1:
            return 0.0
        return min(self.initial + self.increment * (failures - 1), self.maximum)

    def delays(self) -> Iterator[float]:
        """Yield the delay schedule forever."""
        failures = 1
        while True:
            yield self.delay(failures)
            failures += 1


def retry_until_success(
    attempt: Callable[[], bool],
    backoff: LinearBackoff | None = None,
    on_retry: Callable[[int, float], None] | None = None,
    description: str = "operation",
) -> int:
    """Call ``attempt`` until it returns True.

    Args:
        attempt: Function returning True on success and False on failure.
            Exceptions are not caught.
        backoff: Delay schedule (default: LinearBackoff()).
        on_retry: Optional callback (attempt_number, delay) invoked before
            sleeping after a failure.
        description: Label used in log messages.

    Returns:
        Number of attempts made, including the successful one.
    """
    backoff = backoff or LinearBackoff()
    attempts = 0

    for delay in backoff.delays():
        attempts += 1
        if attempt():
            if attempts > 1:
                logger.info(f"{description} succeeded after {attempts} attempts")
            return attempts

        logger.info(f"{description} failed (attempt {attempts}). Retrying in {delay:.0f}s...")
        if on_retry:
            on_retry(attempts, delay)
        time.sleep(delay)

    # delays() never ends, but satisfy type checker
    raise RuntimeError("Unexpected retry loop exit")
