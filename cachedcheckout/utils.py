"""General utils functions"""

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def clear_directory(path: Path) -> bool:
    """
    Best-effort removal of every entry in ``path``, hidden ones included.

    The directory itself is kept. A missing directory is not an error, and
    entries that cannot be removed are logged and skipped.

    Args:
        path: Directory to empty

    Returns:
        True if the directory is empty or absent afterwards
    """
    try:
        entries = list(path.iterdir())
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.debug(f"Could not list {path}: {e}")
        return False

    for entry in entries:
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        except OSError as e:
            logger.debug(f"Could not remove {entry}: {e}")

    try:
        return not any(path.iterdir())
    except OSError:
        return False
