"""Retry policy with exponential backoff for optimistic-concurrency conflicts."""

import time
import random
from typing import Callable, TypeVar, Tuple, Type

from wave_rollout.utils.errors import ConflictError
from wave_rollout.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar('T')


class RetryPolicy:
    """Bounded retry of a whole read-modify-write unit on conflict."""

    def __init__(
        self,
        max_attempts: int = 10,
        base_delay: float = 0.01,
        max_delay: float = 1.0,
        exponential_base: float = 2.0,
        jitter: bool = True,
        retryable: Tuple[Type[Exception], ...] = (ConflictError,),
        sleep: Callable[[float], None] = time.sleep
    ):
        """Initialize retry policy.

        Args:
            max_attempts: Total number of attempts, including the first one
            base_delay: Delay in seconds before the first retry
            max_delay: Cap on the delay between retries
            exponential_base: Growth factor of the delay per attempt
            jitter: Whether to add up to 10% random jitter to the delay
            retryable: Exception types that trigger a retry
            sleep: Function used to wait between attempts
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.retryable = retryable
        self.sleep = sleep

    def should_retry(self, error: Exception, attempt: int) -> bool:
        """Determine if an error should trigger another attempt.

        Args:
            error: The exception that occurred
            attempt: Current attempt number (0-indexed)

        Returns:
            True if the error is retryable and attempts remain
        """
        if attempt + 1 >= self.max_attempts:
            return False
        return isinstance(error, self.retryable)

    def get_delay(self, attempt: int) -> float:
        """Calculate delay before next attempt using exponential backoff.

        Args:
            attempt: Current attempt number (0-indexed)

        Returns:
            Delay in seconds before next attempt
        """
        delay = min(
            self.base_delay * (self.exponential_base ** attempt),
            self.max_delay
        )

        if self.jitter and delay > 0:
            delay += random.uniform(0, delay * 0.1)

        return delay

    def execute(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Execute a function, retrying it from scratch on retryable errors.

        Args:
            func: Function to execute
            *args: Positional arguments for the function
            **kwargs: Keyword arguments for the function

        Returns:
            Result of the function call

        Raises:
            The last exception if it is not retryable or attempts are exhausted
        """
        attempt = 0
        while True:
            try:
                result = func(*args, **kwargs)
                if attempt > 0:
                    logger.debug(f"Operation succeeded after {attempt} retries")
                return result

            except Exception as e:
                if not self.should_retry(e, attempt):
                    if isinstance(e, self.retryable):
                        logger.warning(f"All {self.max_attempts} attempts exhausted: {e}")
                    raise

                delay = self.get_delay(attempt)
                logger.info(
                    f"Attempt {attempt + 1}/{self.max_attempts} failed: "
                    f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                )
                self.sleep(delay)
                attempt += 1
