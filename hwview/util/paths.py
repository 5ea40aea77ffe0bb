"""Utility functions for path operations."""

from pathlib import Path
from typing import Optional

from ..constants import EXPORT_FILE_EXTENSION


def ensure_directory(path: Path) -> Path:
    """Ensure directory exists, creating it if necessary."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def with_export_extension(path: Path) -> Path:
    """Append the snapshot extension unless the path already carries it."""
    if path.name.lower().endswith(EXPORT_FILE_EXTENSION):
        return path
    return path.with_name(path.name + EXPORT_FILE_EXTENSION)


def read_text_file(path: Path) -> Optional[str]:
    """Read a small pseudo-file (sysfs, procfs), returning None when unreadable."""
    try:
        return path.read_text(errors="replace")
    except OSError:
        return None
