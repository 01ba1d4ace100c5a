"""Models for offline library."""

from .base import Base64Body
from .base import CamelCaseModel
from .cache import CacheEntry
from .cache import PartitionDescriptor
from .cache import ResponseSnapshot
from .lifecycle import DrainReport
from .lifecycle import EngineState
from .lifecycle import EngineStatus
from .lifecycle import LifecycleRecord
from .lifecycle import PrecacheReport
from .lifecycle import SyncState
from .notifications import NotificationAction
from .notifications import NotificationRecord
from .queue import QueuedWrite
from .queue import ReplayRejection
from .requests import FetchResult
from .requests import InterceptedRequest
from .requests import RequestMode
from .requests import ResponseSource
from .requests import RouteClass

__all__ = [
    "Base64Body",
    "CamelCaseModel",
    "CacheEntry",
    "PartitionDescriptor",
    "ResponseSnapshot",
    "DrainReport",
    "EngineState",
    "EngineStatus",
    "LifecycleRecord",
    "PrecacheReport",
    "SyncState",
    "NotificationAction",
    "NotificationRecord",
    "QueuedWrite",
    "ReplayRejection",
    "FetchResult",
    "InterceptedRequest",
    "RequestMode",
    "ResponseSource",
    "RouteClass",
]
