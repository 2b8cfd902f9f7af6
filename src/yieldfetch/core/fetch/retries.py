"""
Attempt-level retry utilities with tenacity.

Builds the retrying controller used by the downloader. Retries are
decided on the attempt's outcome (``RetryableError``), never on raised
exceptions, which propagate unchanged (cancellation, timeouts).
"""

from __future__ import annotations

from tenacity import (
    AsyncRetrying,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
    wait_none,
)

from .outcomes import is_retryable

# Default retry configuration
DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_MAX_WAIT = 60  # seconds


class RetryConfig:
    """Configuration for attempt-level retry behavior.

    ``max_attempts`` is an exclusive ceiling: attempts are numbered
    ``1 .. max_attempts - 1``, so ``max_attempts=3`` runs at most two.
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = 0.0,
        max_wait: float = DEFAULT_MAX_WAIT,
    ):
        """Initialize retry configuration.

        Args:
            max_attempts: Exclusive attempt ceiling (>= 1)
            backoff_seconds: Exponential backoff base between attempts; 0 disables waiting
            max_wait: Upper bound on a single wait in seconds
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.max_wait = max_wait

    @property
    def attempts_allowed(self) -> int:
        """Number of attempts that will actually be executed."""
        return self.max_attempts - 1


def build_retrying(config: RetryConfig) -> AsyncRetrying:
    """Create an AsyncRetrying controller for whole-range attempts.

    Stops after ``config.attempts_allowed`` attempts without raising
    ``RetryError``; the caller keeps the last outcome.

    Raises:
        ValueError: If no attempt is allowed
    """
    if config.attempts_allowed < 1:
        raise ValueError("max_attempts leaves no attempt to run")

    if config.backoff_seconds > 0:
        wait_strategy = wait_exponential(
            multiplier=config.backoff_seconds,
            min=config.backoff_seconds,
            max=config.max_wait,
        )
    else:
        wait_strategy = wait_none()

    return AsyncRetrying(
        stop=stop_after_attempt(config.attempts_allowed),
        wait=wait_strategy,
        retry=retry_if_result(is_retryable),
        retry_error_callback=lambda retry_state: None,
    )
