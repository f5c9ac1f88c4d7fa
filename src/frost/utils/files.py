"""Atomic file writes for generated config and cache files."""

import os
import tempfile
from pathlib import Path

from frost.core.exceptions import PersistenceError
from frost.utils.logging import get_logger

logger = get_logger(__name__)


def atomic_write(path: str | Path, contents: str, mode: int | None = None) -> Path:
    """Write ``contents`` to ``path`` so readers see the old file or the new one.

    Parent directories are created as needed. The data is written to a
    temporary file in the target directory and moved into place.

    Args:
        path: Destination file
        contents: Text to write
        mode: Optional permission bits for the new file

    Returns:
        The resolved destination path

    Raises:
        PersistenceError: If any filesystem operation fails
    """
    target = Path(path).expanduser()
    tmp_name: str | None = None

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.name}.")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(contents)
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except OSError as e:
        logger.error("file_write_failed", path=str(target), error=str(e))
        if tmp_name is not None:
            Path(tmp_name).unlink(missing_ok=True)
        raise PersistenceError(f"Failed to write {target}: {e}") from e

    logger.debug("file_written", path=str(target), size=len(contents))
    return target
