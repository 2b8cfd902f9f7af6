"""
Per-year transfer outcomes and error classification.

The fetch step returns one of ``Ok``, ``RetryableError`` or ``FatalError``;
the retry loop decides on the tag, not on exception interception.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

from ..backends.base import TransferNoResponseError, TransferStatusError


class ErrorKind(str, Enum):
    """Failure categories for a single year's transfer."""

    HTTP_STATUS = "http_status"  # Response received, non-success status
    NO_RESPONSE = "no_response"  # Network unreachable, timeout, dropped connection
    FILESYSTEM = "filesystem"  # Staging or publish failed on disk
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Ok:
    year: int
    path: Path
    bytes_written: int
    replaced: bool = False

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class RetryableError:
    kind: ErrorKind
    year: int
    message: str
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return False


@dataclass(frozen=True)
class FatalError:
    kind: ErrorKind
    year: int
    message: str

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Ok, RetryableError, FatalError]


def is_retryable(outcome: Outcome | None) -> bool:
    return isinstance(outcome, RetryableError)


def classify(
    exc: Exception,
    year: int,
    *,
    filesystem_errors_fatal: bool = True,
) -> RetryableError | FatalError:
    """Map an exception raised while fetching ``year`` to an outcome.

    Args:
        exc: Exception raised by transfer, staging or publish
        year: Year being fetched
        filesystem_errors_fatal: Treat OSError as non-retryable

    Returns:
        RetryableError or FatalError
    """
    if isinstance(exc, TransferStatusError):
        return RetryableError(ErrorKind.HTTP_STATUS, year, str(exc), status_code=exc.status_code)

    if isinstance(exc, TransferNoResponseError):
        return RetryableError(ErrorKind.NO_RESPONSE, year, str(exc))

    # Socket-level OSError subclasses are network failures, not disk ones
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return RetryableError(ErrorKind.NO_RESPONSE, year, f"{type(exc).__name__}: {exc}")

    if isinstance(exc, OSError):
        message = f"{type(exc).__name__}: {exc}"
        if filesystem_errors_fatal:
            return FatalError(ErrorKind.FILESYSTEM, year, message)
        return RetryableError(ErrorKind.FILESYSTEM, year, message)

    return RetryableError(ErrorKind.UNKNOWN, year, f"{type(exc).__name__}: {exc}")
