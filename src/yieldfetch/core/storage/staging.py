"""
Temporary-file staging and atomic publish.

Downloads land in a uniquely named temp file first and are moved into
their destination only once complete, so a destination file is either
absent or a full transfer.
"""

from __future__ import annotations

import errno
import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path

from ..logging import get_logger

logger = get_logger(__name__)

STAGING_SUFFIX = ".tmp"


@dataclass(frozen=True)
class StagedFile:
    """Temp file owned by one in-flight transfer."""

    path: Path

    @property
    def exists(self) -> bool:
        return self.path.exists()


@dataclass(frozen=True)
class PublishResult:
    """Outcome of moving a staged file into place."""

    destination: Path
    replaced: bool
    size: int


def new_staged_file(staging_dir: Path | str | None = None) -> StagedFile:
    """Return a fresh, never reused temp path in ``staging_dir``.

    Defaults to the system temp directory. The file is not created.
    """
    directory = Path(staging_dir) if staging_dir else Path(tempfile.gettempdir())
    return StagedFile(directory / f"{uuid.uuid4().hex}{STAGING_SUFFIX}")


def ensure_destination(directory: Path | str) -> Path:
    """Create the destination directory if absent."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _move_across_devices(source: Path, destination: Path) -> None:
    """Copy ``source`` next to ``destination`` and rename it into place.

    os.replace is only atomic within one filesystem, so the copy goes to a
    sibling temp file first.
    """
    sibling = destination.with_name(f".{uuid.uuid4().hex}{STAGING_SUFFIX}")
    try:
        shutil.copyfile(source, sibling)
        os.replace(sibling, destination)
    except BaseException:
        sibling.unlink(missing_ok=True)
        raise
    source.unlink(missing_ok=True)


def publish(staged: StagedFile, destination: Path | str) -> PublishResult:
    """Move a fully written staged file to ``destination``.

    An existing destination file is removed immediately before the move.

    Raises:
        OSError: Removal or move failed
    """
    destination = Path(destination)
    size = staged.path.stat().st_size

    replaced = destination.exists()
    if replaced:
        logger.info("Deleting existing file: %s", destination, extra={"path": str(destination)})
        destination.unlink()

    logger.debug("Moving file from: %s - to: %s", staged.path, destination)
    try:
        os.replace(staged.path, destination)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        _move_across_devices(staged.path, destination)

    return PublishResult(destination=destination, replaced=replaced, size=size)


def discard(staged: StagedFile) -> bool:
    """Best-effort removal of an abandoned staged file.

    Returns:
        True if the file is gone afterwards
    """
    try:
        staged.path.unlink(missing_ok=True)
        return True
    except OSError as e:
        logger.debug("Could not remove staged file %s: %s", staged.path, e)
        return False
