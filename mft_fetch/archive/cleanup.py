"""Removal of the temporary download archive."""

from __future__ import annotations

import shutil
from pathlib import Path

from mft_fetch.core.exceptions import CleanupException
from mft_fetch.core.logging import get_logger

logger = get_logger(__name__)


def remove_downloaded_files(path: Path) -> None:
    """
    Remove the downloaded archive, or the directory it occupies.

    A path that no longer exists is not an error.

    Raises:
        CleanupException: Removal failed
    """
    path = Path(path)
    logger.info("removing_downloaded_files", path=str(path))

    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
    except OSError as e:
        msg = f"Failed to remove {path}: {e}"
        raise CleanupException(msg, details={"path": str(path)}) from e
