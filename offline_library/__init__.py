"""Offline engine library.

This is the business logic layer behind the offlined daemon: everything a
web application needs to keep working without a network.

Public Interface:
    Modules:
    - storage: Atomic JSON persistence and storage paths
    - config: Settings loading
    - models: Shared data structures
    - cache: Versioned response cache and fingerprints
    - precache: Install-time precaching
    - routing: Request classification
    - fetch: Network transport and fetch strategies
    - queue: Durable write queue
    - sync: Connectivity tracking and queue replay
    - notifications: Push notification handling
"""

from .config import EngineSettings
from .config import load_config
from .engine import OfflineEngine
from .models import FetchResult
from .models import InterceptedRequest
from .models import ResponseSnapshot

__all__ = [
    "EngineSettings",
    "FetchResult",
    "InterceptedRequest",
    "OfflineEngine",
    "ResponseSnapshot",
    "load_config",
]
