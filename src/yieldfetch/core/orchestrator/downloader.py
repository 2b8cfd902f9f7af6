"""
Yield curve download orchestrator.

Coordinates the fetch loop: throttle -> transfer into a staged temp file
-> atomic publish, for every year in the range, with bounded whole-range
retries.

Two runs pointed at the same destination directory race on the
remove-then-rename of each file; run a single instance per directory.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from yieldfetch.core.backends.base import Backend, DownloadSpec
from yieldfetch.core.backends.http_backend import HttpBackend
from yieldfetch.core.config.models import AppConfig, RetryPolicy
from yieldfetch.core.fetch.outcomes import (
    ErrorKind,
    FatalError,
    Ok,
    Outcome,
    RetryableError,
    classify,
)
from yieldfetch.core.fetch.retries import RetryConfig, build_retrying
from yieldfetch.core.fetch.throttling import Throttle
from yieldfetch.core.fetch.years import (
    DEFAULT_BASE_URL,
    DEFAULT_DATASET,
    FIRST_YEAR,
    build_url,
    destination_name,
    fetch_range,
)
from yieldfetch.core.logging import ContextualLogger, get_contextual_logger
from yieldfetch.core.storage.staging import (
    discard,
    ensure_destination,
    new_staged_file,
    publish,
)


class RunState(str, Enum):
    """Terminal states of a download run."""

    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"  # Attempt ceiling reached, last attempt failed
    FAILED = "failed"  # Stopped early on a non-retryable error


@dataclass
class RunResult:
    """Result of a download run."""

    max_attempts: int
    state: RunState = RunState.EXHAUSTED
    attempts: int = 0

    # Years in the order they were requested / published, across attempts
    requested: list[int] = field(default_factory=list)
    published: list[int] = field(default_factory=list)

    last_outcome: Outcome | None = None

    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def ok(self) -> bool:
        return self.state == RunState.SUCCEEDED

    @property
    def duration_seconds(self) -> float | None:
        """Get run duration in seconds."""
        if self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        last_error = None
        if isinstance(self.last_outcome, (RetryableError, FatalError)):
            last_error = {
                "kind": self.last_outcome.kind.value,
                "year": self.last_outcome.year,
                "message": self.last_outcome.message,
                "status_code": getattr(self.last_outcome, "status_code", None),
            }
        return {
            "state": self.state.value,
            "attempts": self.attempts,
            "max_attempts": self.max_attempts,
            "requests": len(self.requested),
            "published": len(set(self.published)),
            "last_error": last_error,
            "duration_seconds": self.duration_seconds,
        }


class YieldCurveDownloader:
    """Downloads every yearly yield curve file into a destination directory.

    Each attempt walks the year range in ascending order. The first failing
    year aborts the attempt; the next attempt starts again from the first
    year (``RetryPolicy.RESTART``) or from the failed year
    (``RetryPolicy.RESUME``). ``max_attempts`` is an exclusive ceiling, so
    at most ``max_attempts - 1`` attempts run.

    Transfer, staging and publish failures never escape ``run()``; the
    returned ``RunResult`` carries the outcome. Cancellation and timeouts
    do propagate, after the in-flight temp file is discarded.
    """

    def __init__(
        self,
        destination_dir: Path | str,
        *,
        backend: Backend | None = None,
        throttle: Throttle | None = None,
        max_attempts: int = 5,
        retry_policy: RetryPolicy = RetryPolicy.RESTART,
        retry_backoff_seconds: float = 0.0,
        filesystem_errors_fatal: bool = True,
        first_year: int = FIRST_YEAR,
        staging_dir: Path | str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        dataset: str = DEFAULT_DATASET,
        request_timeout: float | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        """Initialize the downloader.

        Args:
            destination_dir: Directory receiving the published files (created if absent)
            backend: Download backend (default: HttpBackend)
            throttle: Shared request throttle (default: 1 request / second)
            max_attempts: Exclusive attempt ceiling
            retry_policy: Where the next attempt starts after a failure
            retry_backoff_seconds: Exponential backoff base between attempts
            filesystem_errors_fatal: Stop on OSError instead of retrying
            first_year: First year of the range
            staging_dir: Temp directory (default: system temp)
            base_url: Yield curve endpoint
            dataset: Dataset query parameter
            request_timeout: Per-request timeout override
            today: Date source for the upper bound of the range
        """
        self.destination_dir = ensure_destination(destination_dir)
        self.backend = backend or HttpBackend()
        self._owns_backend = backend is None
        # Let's be gentle with government websites that might rely on legacy technology
        self.throttle = throttle or Throttle(capacity=1, refill_seconds=1.0)
        self.retry_config = RetryConfig(
            max_attempts=max_attempts,
            backoff_seconds=retry_backoff_seconds,
        )
        self.retry_policy = RetryPolicy(retry_policy)
        self.filesystem_errors_fatal = filesystem_errors_fatal
        self.first_year = first_year
        self.staging_dir = Path(staging_dir) if staging_dir else None
        self.base_url = base_url
        self.dataset = dataset
        self.request_timeout = request_timeout
        self._today = today

        self.logger = get_contextual_logger(__name__, max_attempts=max_attempts)

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        backend: Backend | None = None,
        throttle: Throttle | None = None,
    ) -> "YieldCurveDownloader":
        """Build a downloader from application configuration.

        A backend created here is closed when ``run()`` finishes.
        """
        owns_backend = backend is None
        if backend is None:
            backend = HttpBackend(
                timeout=config.http.timeout_seconds,
                user_agent=config.http.user_agent,
            )
        downloader = cls(
            config.destination_dir,
            backend=backend,
            throttle=throttle or Throttle.from_config(config.throttle),
            max_attempts=config.max_attempts,
            retry_policy=config.retry_policy,
            retry_backoff_seconds=config.retry_backoff_seconds,
            filesystem_errors_fatal=config.filesystem_errors_fatal,
            first_year=config.source.first_year,
            staging_dir=config.staging_dir,
            base_url=config.source.base_url,
            dataset=config.source.dataset,
        )
        downloader._owns_backend = owns_backend
        return downloader

    @property
    def max_attempts(self) -> int:
        return self.retry_config.max_attempts

    def plan(self) -> list[tuple[int, str, Path]]:
        """Years, URLs and destination paths a run would touch right now."""
        return [
            (year, self._url_for(year), self.destination_dir / destination_name(year))
            for year in fetch_range(self.first_year, today=self._today())
        ]

    def _url_for(self, year: int) -> str:
        return build_url(year, self.base_url, self.dataset)

    async def run(self, timeout: float | None = None) -> RunResult:
        """Download all available yield curve data.

        Args:
            timeout: Abort the whole run after this many seconds

        Returns:
            RunResult with the terminal state

        Raises:
            asyncio.TimeoutError: ``timeout`` elapsed
            asyncio.CancelledError: The calling task was cancelled
        """
        try:
            if timeout is not None:
                return await asyncio.wait_for(self._run(), timeout)
            return await self._run()
        finally:
            if self._owns_backend:
                await self.backend.close()

    async def _run(self) -> RunResult:
        result = RunResult(max_attempts=self.max_attempts)
        self.logger.info("Downloading yield curve data to: %s", self.destination_dir)

        if self.retry_config.attempts_allowed < 1:
            self.logger.warning("max_attempts=%d leaves no attempt to run", self.max_attempts)
            result.finished_at = datetime.now(timezone.utc)
            return result

        resume_from: int | None = None

        async for attempt in build_retrying(self.retry_config):
            number = attempt.retry_state.attempt_number
            log = self.logger.with_context(attempt=number)

            with attempt:
                outcome = await self._run_attempt(log, result, start_year=resume_from)

            if attempt.retry_state.outcome.failed:
                continue

            attempt.retry_state.set_result(outcome)
            result.attempts = number
            result.last_outcome = outcome

            if isinstance(outcome, RetryableError):
                self._log_retryable(log, outcome, number)
                if self.retry_policy == RetryPolicy.RESUME:
                    resume_from = outcome.year
            elif isinstance(outcome, FatalError):
                log.critical(
                    "Non-retryable %s error on %d, stopping: %s",
                    outcome.kind.value,
                    outcome.year,
                    outcome.message,
                    extra={"year": outcome.year, "kind": outcome.kind.value},
                )

        if result.last_outcome is None or isinstance(result.last_outcome, Ok):
            result.state = RunState.SUCCEEDED
            self.logger.info("Yield curve download complete after %d attempt(s)", result.attempts)
        elif isinstance(result.last_outcome, FatalError):
            result.state = RunState.FAILED
        else:
            result.state = RunState.EXHAUSTED
            self.logger.error(
                "Giving up after %d attempt(s); last failure on %d",
                result.attempts,
                result.last_outcome.year,
            )

        result.finished_at = datetime.now(timezone.utc)
        return result

    async def _run_attempt(
        self,
        log: ContextualLogger,
        result: RunResult,
        start_year: int | None = None,
    ) -> Outcome | None:
        """Walk the year range once.

        Returns:
            The first non-Ok outcome, else the last Ok (None for an empty range)
        """
        # Upper bound recomputed per attempt
        years = fetch_range(self.first_year, today=self._today())
        if start_year is not None:
            years = range(max(start_year, years.start), years.stop)

        outcome: Outcome | None = None
        for year in years:
            result.requested.append(year)
            outcome = await self._fetch_year(year, log.with_context(year=year))
            if not outcome.ok:
                return outcome
            result.published.append(year)
        return outcome

    async def _fetch_year(self, year: int, log: ContextualLogger) -> Outcome:
        """Download one year into a fresh temp file and publish it."""
        staged = new_staged_file(self.staging_dir)
        destination = self.destination_dir / destination_name(year)
        url = self._url_for(year)

        try:
            await self.throttle.acquire()

            log.info("Downloading yield curve data to: %s", staged.path, extra={"url": url})
            download = await self.backend.download(
                DownloadSpec(url=url, year=year, timeout=self.request_timeout),
                staged.path,
            )

            published = publish(staged, destination)
        except Exception as e:
            return classify(e, year, filesystem_errors_fatal=self.filesystem_errors_fatal)
        finally:
            # Nothing left behind after publish; otherwise the transfer was abandoned
            if staged.exists:
                discard(staged)

        log.info(
            "Successfully downloaded yield curve data: %s",
            destination,
            extra={"path": str(destination)},
        )
        return Ok(
            year=year,
            path=published.destination,
            bytes_written=download.bytes_written,
            replaced=published.replaced,
        )

    def _log_retryable(self, log: ContextualLogger, outcome: RetryableError, number: int) -> None:
        extra = {"year": outcome.year, "kind": outcome.kind.value}
        if outcome.kind == ErrorKind.HTTP_STATUS:
            log.error(
                "Web client error with status code %s - Retrying (%d/%d)",
                outcome.status_code,
                number,
                self.max_attempts,
                extra={**extra, "status_code": outcome.status_code},
            )
        elif outcome.kind == ErrorKind.NO_RESPONSE:
            log.error(
                "No response received (%s). Retrying (%d/%d)",
                outcome.message,
                number,
                self.max_attempts,
                extra=extra,
            )
        else:
            log.error(
                "Unknown error occurred: %s. Retrying (%d/%d)",
                outcome.message,
                number,
                self.max_attempts,
                extra=extra,
            )


async def run_download(
    config: AppConfig,
    *,
    timeout: float | None = None,
) -> RunResult:
    """Convenience function to run a download from configuration.

    Args:
        config: Application configuration
        timeout: Abort the run after this many seconds

    Returns:
        RunResult with the terminal state
    """
    async with HttpBackend(
        timeout=config.http.timeout_seconds,
        user_agent=config.http.user_agent,
    ) as backend:
        downloader = YieldCurveDownloader.from_config(config, backend=backend)
        return await downloader.run(timeout=timeout)
