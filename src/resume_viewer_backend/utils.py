"""
Utility functions for file system operations.

This module provides helper functions for:
- Ensuring directory creation with proper error handling
- Replacing an artifact file wholesale so readers never see a partial write
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def ensure_directory(path: Path) -> Path:
    """
    Create a directory if it doesn't exist, including parent directories.

    This is a safe idempotent operation that won't fail if the directory
    already exists.

    Args:
        path: The directory path to create

    Returns:
        The same path object for chaining

    Raises:
        OSError: If directory creation fails due to permissions or other I/O errors
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def replace_file_bytes(path: Path, data: bytes) -> Path:
    """
    Write ``data`` to ``path`` via a sibling temporary file and an atomic rename.

    Args:
        path: Destination file; its parent directory must exist
        data: Full file contents

    Returns:
        The destination path
    """
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as buffer:
            buffer.write(data)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path
