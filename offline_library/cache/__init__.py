"""Response cache for the offline engine.

Provides the versioned, partitioned Cache Store and request fingerprinting.
"""

from .fingerprint import fingerprint
from .fingerprint import fingerprint_for
from .fingerprint import normalize_url
from .fingerprint import resolve_url
from .store import CacheStore
from .store import dynamic_partition
from .store import static_partition

__all__ = [
    "CacheStore",
    "dynamic_partition",
    "fingerprint",
    "fingerprint_for",
    "normalize_url",
    "resolve_url",
    "static_partition",
]
