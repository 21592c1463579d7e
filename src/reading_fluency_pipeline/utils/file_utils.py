"""
File utility functions for the reading fluency pipeline.
"""

import os
import shutil
import time
from pathlib import Path
from typing import Union

from ..errors import StorageError
from ..logging_config import get_logger

logger = get_logger(__name__)


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to create

    Returns:
        Path object for the directory
    """
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Directory ensured", path=str(path))
    return path


def get_run_token() -> str:
    """Uniqueness token for one orchestration run, derived from the current time."""
    return f"{time.time_ns()}_{os.getpid()}"


def create_work_directory(parent: Union[str, Path], prefix: str = "video") -> Path:
    """
    Create a uniquely named working directory under ``parent``.

    Args:
        parent: Directory that holds per-run working areas
        prefix: Name prefix for the working directory

    Returns:
        Path to the created directory

    Raises:
        StorageError: If the directory cannot be created
    """
    try:
        parent = ensure_directory(parent)
        while True:
            work_dir = parent / f"{prefix}-{get_run_token()}"
            try:
                work_dir.mkdir()
                break
            except FileExistsError:
                continue
    except OSError as e:
        logger.error("Failed to create working directory", parent=str(parent), error=str(e))
        raise StorageError(f"Cannot create working directory in {parent}: {e}", stage="workspace") from e

    logger.debug("Working directory created", work_dir=str(work_dir))
    return work_dir


def remove_directory(path: Union[str, Path]) -> None:
    """
    Remove a directory tree.

    Raises:
        StorageError: If the directory exists and cannot be removed
    """
    path = Path(path)
    if not path.exists():
        return
    try:
        shutil.rmtree(path)
    except OSError as e:
        logger.error("Failed to remove directory", path=str(path), error=str(e))
        raise StorageError(f"Cannot remove working directory {path}: {e}", stage="cleanup") from e
    logger.debug("Directory removed", path=str(path))


def write_text_file(path: Union[str, Path], content: str) -> Path:
    """
    Write ``content`` to ``path`` as UTF-8 with Unix newlines.

    Raises:
        StorageError: If the file cannot be written
    """
    path = Path(path)
    try:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
    except OSError as e:
        logger.error("Failed to write file", path=str(path), error=str(e))
        raise StorageError(f"Cannot write {path}: {e}") from e
    return path


def discard_file(path: Union[str, Path]) -> None:
    """Delete ``path`` if it exists, logging rather than raising on failure."""
    path = Path(path)
    try:
        path.unlink()
    except FileNotFoundError:
        return
    except OSError as e:
        logger.error("Failed to delete file", path=str(path), error=str(e))
