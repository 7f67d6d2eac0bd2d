"""Retry handler with exponential backoff for rate-limited generation calls."""

import time
from typing import Any, Callable, Optional, Tuple, Type

import structlog

from article_pipeline.shared.config import Settings
from article_pipeline.shared.exceptions import RateLimitExceededError

logger = structlog.get_logger(__name__)


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 10.0,
        max_delay: float = 600.0,
        exponential_base: float = 2.0,
        retryable_exceptions: Optional[Tuple[Type[Exception], ...]] = None
    ):
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.retryable_exceptions = retryable_exceptions or (RateLimitExceededError,)

        if max_attempts > 1 and base_delay * exponential_base ** (max_attempts - 2) > max_delay:
            raise ValueError(
                f"Final backoff delay {base_delay * exponential_base ** (max_attempts - 2)}s "
                f"exceeds max_delay {max_delay}s"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryConfig":
        return cls(
            max_attempts=settings.RETRY_LIMIT,
            base_delay=settings.RETRY_BASE_DELAY,
            max_delay=settings.RETRY_MAX_DELAY,
        )


class RetryHandler:
    """Runs a callable, sleeping and retrying when it raises a retryable error.

    `max_attempts` counts every call including the first one. Delays follow
    base_delay * exponential_base ** attempt with no jitter, so consecutive
    waits are strictly increasing. The config rejects any schedule whose last
    wait would exceed max_delay, so no delay is ever clipped.
    """

    def __init__(self, config: Optional[RetryConfig] = None, sleep: Callable[[float], None] = time.sleep):
        self.config = config or RetryConfig()
        self._sleep = sleep

    def calculate_delay(self, attempt: int) -> float:
        """Calculate the wait after a failed attempt.

        Args:
            attempt: Failed attempt number (0-based)

        Returns:
            Delay in seconds
        """
        return self.config.base_delay * (self.config.exponential_base ** attempt)

    def should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if an exception should trigger another attempt.

        Args:
            exception: The exception that occurred
            attempt: Failed attempt number (0-based)
        """
        if attempt + 1 >= self.config.max_attempts:
            return False
        return isinstance(exception, self.config.retryable_exceptions)

    def execute_with_retry(
        self,
        func: Callable,
        *args,
        correlation_id: Optional[str] = None,
        **kwargs
    ) -> Any:
        """Execute a function with retry logic.

        Raises:
            The last exception once it is non-retryable or attempts are exhausted
        """
        name = getattr(func, "__name__", repr(func))

        for attempt in range(self.config.max_attempts):
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.warning(
                    "Attempt failed",
                    correlation_id=correlation_id,
                    function=name,
                    attempt=attempt + 1,
                    max_attempts=self.config.max_attempts,
                    error=str(e),
                    error_type=type(e).__name__,
                )

                if not self.should_retry(e, attempt):
                    if isinstance(e, self.config.retryable_exceptions):
                        logger.error(
                            "All retries exhausted",
                            correlation_id=correlation_id,
                            function=name,
                            total_attempts=attempt + 1,
                        )
                    raise

                delay = self.calculate_delay(attempt)
                logger.info(
                    "Retrying after backoff",
                    correlation_id=correlation_id,
                    function=name,
                    delay=delay,
                    next_attempt=attempt + 2,
                )
                self._sleep(delay)
                continue

            if attempt > 0:
                logger.info(
                    "Succeeded after retry",
                    correlation_id=correlation_id,
                    function=name,
                    successful_attempt=attempt + 1,
                )
            return result

        # max_attempts is validated to be >= 1, the loop always returns or raises
        raise RuntimeError("RetryHandler configured with no attempts")
