"""API models for offlined daemon.

This module defines request and response models for the control API.
"""

from .errors import ErrorResponse
from .events import EngineEvent
from .requests import ControlMessageRequest
from .requests import NotificationClickRequest
from .requests import PushRequest
from .requests import SyncRequest
from .responses import CancelResponse
from .responses import ConnectivityResponse
from .responses import HealthResponse
from .responses import MessageResponse
from .responses import NotificationClickResponse
from .responses import PartitionListResponse
from .responses import PushResponse
from .responses import QueueListResponse

__all__ = [
    "CancelResponse",
    "ConnectivityResponse",
    "ControlMessageRequest",
    "EngineEvent",
    "ErrorResponse",
    "HealthResponse",
    "MessageResponse",
    "NotificationClickRequest",
    "NotificationClickResponse",
    "PartitionListResponse",
    "PushRequest",
    "PushResponse",
    "QueueListResponse",
    "SyncRequest",
]
