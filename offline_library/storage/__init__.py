"""Storage module for offline_library.

Provides path resolution and atomic JSON persistence.

Public Interface:
    - get_home_dir: Get OFFLINED_HOME
    - get_config_dir: Get config directory
    - get_state_dir: Get durable state directory
    - get_cache_dir: Get cache directory
    - get_log_dir: Get log directory
    - get_partitions_dir: Get cache partition root
    - get_queue_dir: Get write queue directory
    - atomic_write_text / save_json / load_json / remove_file: Durable file operations
"""

from .files import atomic_write_text
from .files import load_json
from .files import remove_file
from .files import save_json
from .paths import get_cache_dir
from .paths import get_config_dir
from .paths import get_home_dir
from .paths import get_log_dir
from .paths import get_partitions_dir
from .paths import get_queue_dir
from .paths import get_state_dir

__all__ = [
    "get_home_dir",
    "get_config_dir",
    "get_state_dir",
    "get_cache_dir",
    "get_log_dir",
    "get_partitions_dir",
    "get_queue_dir",
    "atomic_write_text",
    "save_json",
    "load_json",
    "remove_file",
]
