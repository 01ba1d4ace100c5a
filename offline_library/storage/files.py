"""Atomic file persistence helpers.

Every durable mutation in the engine goes through these helpers: write to a
uniquely named temporary file in the target directory, fsync, then rename
over the destination. Readers therefore observe either the previous or the
complete new content.
"""

import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def _fsync_dir(directory: Path) -> None:
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError:
        # Directory handles can't be opened on every platform
        return
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def atomic_write_text(path: Path, content: str) -> None:
    """Write text to a file atomically and durably.

    Args:
        path: Target file path
        content: Text to write

    Raises:
        OSError: If the file cannot be written
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    # Unique temp name so concurrent writers never share a temp file
    temp_path = path.parent / f".{path.name}.{uuid.uuid4().hex}.tmp"
    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        if temp_path.exists():
            temp_path.unlink()
        raise

    _fsync_dir(path.parent)
    logger.debug(f"Wrote {path}")


def save_json(path: Path, data: dict[str, Any]) -> None:
    """Save dict as JSON file atomically.

    Args:
        path: Target file path
        data: Dictionary to save as JSON
    """
    atomic_write_text(path, json.dumps(data, indent=2, default=str, ensure_ascii=False))


def load_json(path: Path) -> dict[str, Any] | None:
    """Load JSON file or return None if not found or unreadable.

    Args:
        path: File path to load

    Returns:
        Dictionary from JSON file, or None if file doesn't exist
    """
    if not path.exists():
        return None
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Failed to load JSON from {path}: {e}")
        return None


def remove_file(path: Path) -> bool:
    """Remove a file durably.

    Args:
        path: File to remove

    Returns:
        True if the file existed and was removed
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    _fsync_dir(path.parent)
    return True
