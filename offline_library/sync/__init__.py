"""Connectivity tracking and queue replay."""

from .connectivity import ConnectivityMonitor
from .engine import SYNC_TAGS
from .engine import SyncEngine

__all__ = [
    "SYNC_TAGS",
    "ConnectivityMonitor",
    "SyncEngine",
]
