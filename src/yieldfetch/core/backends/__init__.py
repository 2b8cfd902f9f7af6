"""Download backends."""

from .base import (
    Backend,
    BackendError,
    DownloadResult,
    DownloadSpec,
    TransferNoResponseError,
    TransferStatusError,
)
from .http_backend import HttpBackend

__all__ = [
    "Backend",
    "BackendError",
    "DownloadResult",
    "DownloadSpec",
    "HttpBackend",
    "TransferNoResponseError",
    "TransferStatusError",
]
