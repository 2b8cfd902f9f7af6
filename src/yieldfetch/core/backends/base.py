"""
Backend base classes and data structures.

Defines the interface contract for download backends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass
class DownloadSpec:
    """Specification for a single-file download."""

    url: str
    year: int | None = None
    timeout: float | None = None  # None = backend default


@dataclass
class DownloadResult:
    """Result of a download written to disk."""

    url: str
    final_url: str  # After redirects
    status_code: int
    path: Path
    bytes_written: int

    elapsed_ms: float
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    year: int | None = None

    @property
    def ok(self) -> bool:
        """Check if request was successful (2xx status)."""
        return 200 <= self.status_code < 300


class Backend(ABC):
    """Abstract base class for download backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier."""

    @abstractmethod
    async def download(self, request: DownloadSpec, target: Path) -> DownloadResult:
        """Download a URL and write the full response body to ``target``.

        Args:
            request: Download specification
            target: File to create or truncate

        Returns:
            DownloadResult describing the transfer

        Raises:
            TransferStatusError: Response received with a non-success status
            TransferNoResponseError: No response could be obtained
            OSError: Target could not be written
        """

    async def close(self) -> None:
        """Clean up backend resources."""

    async def __aenter__(self) -> "Backend":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


class BackendError(Exception):
    """Base exception for backend errors."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.url = url
        self.status_code = status_code
        self.cause = cause


class TransferStatusError(BackendError):
    """Transfer failed with an HTTP response; status code is available."""


class TransferNoResponseError(BackendError):
    """Transfer failed before any response was received."""
