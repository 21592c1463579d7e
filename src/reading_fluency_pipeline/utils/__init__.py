"""
Utility modules for the reading fluency pipeline.
"""

from .file_utils import (
    ensure_directory,
    get_run_token,
    create_work_directory,
    remove_directory,
    write_text_file,
    discard_file,
)

__all__ = [
    "ensure_directory",
    "get_run_token",
    "create_work_directory",
    "remove_directory",
    "write_text_file",
    "discard_file",
]
