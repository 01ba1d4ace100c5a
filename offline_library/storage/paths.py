"""Path resolution for offlined storage locations.

This module provides path resolution based on OFFLINED_HOME environment variable,
following XDG-like directory structure within that root.

Contract:
- Inputs: Environment variables (OFFLINED_HOME, OFFLINED_*_DIR)
- Outputs: Resolved Path objects
- Side Effects: Creates directories if they don't exist
"""

import os
from pathlib import Path


def get_home_dir() -> Path:
    """Get OFFLINED_HOME from environment.

    Returns:
        Path to root directory (default: .offlined)
    """
    root = os.environ.get("OFFLINED_HOME", ".offlined")
    return Path(root).resolve()


def _resolve_dir(name: str, env_var: str) -> Path:
    directory: Path = get_home_dir() / name

    env_override: str | None = os.environ.get(env_var)
    if env_override is not None:
        directory = Path(env_override).resolve()

    directory.mkdir(parents=True, exist_ok=True)
    return directory


def get_config_dir() -> Path:
    """Get configuration directory.

    Returns:
        Path to config directory ($OFFLINED_HOME/config)
    """
    return _resolve_dir("config", "OFFLINED_CONFIG_DIR")


def get_state_dir() -> Path:
    """Get durable state directory.

    Holds the write queue and the lifecycle record. Everything here must
    survive restarts.

    Returns:
        Path to state directory ($OFFLINED_HOME/state)

    Environment Variables:
        OFFLINED_STATE_DIR: Override state directory location
    """
    return _resolve_dir("state", "OFFLINED_STATE_DIR")


def get_cache_dir() -> Path:
    """Get cache directory.

    Returns:
        Path to cache directory ($OFFLINED_HOME/cache)
    """
    return _resolve_dir("cache", "OFFLINED_CACHE_DIR")


def get_log_dir() -> Path:
    """Get log directory.

    Returns:
        Path to log directory ($OFFLINED_HOME/logs)

    Example:
        >>> log_dir = get_log_dir()
        >>> assert log_dir.name == "logs" or "OFFLINED_LOG_DIR" in os.environ
    """
    return _resolve_dir("logs", "OFFLINED_LOG_DIR")


def get_partitions_dir() -> Path:
    """Get cache partition root.

    Returns:
        Path to partitions ($OFFLINED_HOME/cache/partitions)
    """
    partitions_dir = get_cache_dir() / "partitions"
    partitions_dir.mkdir(parents=True, exist_ok=True)
    return partitions_dir


def get_queue_dir() -> Path:
    """Get write queue directory.

    Returns:
        Path to queued writes ($OFFLINED_HOME/state/queue)
    """
    queue_dir = get_state_dir() / "queue"
    queue_dir.mkdir(parents=True, exist_ok=True)
    return queue_dir
