"""Retry with exponential backoff for backend calls."""

import logging
import time
from typing import Callable, Tuple, Type

from ..errors import CloudSyncError

logger = logging.getLogger(__name__)


class RetryPolicy:
    """How often and how patiently a backend retries a failing call.

    Args:
        attempts: Total number of attempts (1 disables retrying)
        delay: Delay before the first retry, in seconds
        backoff: Multiplier applied to the delay after each retry
        max_delay: Upper bound for a single delay
        retry_on: Exception types considered transient
        give_up_on: Exception types raised immediately, even if listed in retry_on
        sleep: Function used to wait between attempts
    """

    def __init__(
        self,
        attempts: int = 3,
        delay: float = 1.0,
        backoff: float = 2.0,
        max_delay: float = 60.0,
        retry_on: Tuple[Type[BaseException], ...] = (Exception,),
        give_up_on: Tuple[Type[BaseException], ...] = (CloudSyncError,),
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.attempts = max(1, attempts)
        self.delay = delay
        self.backoff = backoff
        self.max_delay = max_delay
        self.retry_on = retry_on
        self.give_up_on = give_up_on
        self.sleep = sleep

    def call(self, func: Callable, *args, description: str = "", **kwargs):
        """Run ``func`` and retry it on transient errors.

        The last error is re-raised once all attempts are used up.
        """
        delay = self.delay
        for attempt in range(1, self.attempts + 1):
            try:
                return func(*args, **kwargs)
            except self.give_up_on:
                raise
            except self.retry_on as e:
                if attempt == self.attempts:
                    raise
                logger.warning(
                    f"{description or getattr(func, '__name__', 'call')} failed "
                    f"(attempt {attempt}/{self.attempts}): {e}; retrying in {delay:.1f}s"
                )
                self.sleep(delay)
                delay = min(delay * self.backoff, self.max_delay)

    @classmethod
    def none(cls) -> "RetryPolicy":
        return cls(attempts=1)

