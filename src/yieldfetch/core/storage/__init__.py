"""Staging and publish of downloaded files."""

from .staging import (
    PublishResult,
    StagedFile,
    discard,
    ensure_destination,
    new_staged_file,
    publish,
)

__all__ = [
    "PublishResult",
    "StagedFile",
    "discard",
    "ensure_destination",
    "new_staged_file",
    "publish",
]
