"""Response models for offlined API."""

from datetime import datetime

from pydantic import Field

from offline_library.models import EngineState
from offline_library.models import NotificationRecord
from offline_library.models import PartitionDescriptor
from offline_library.models import QueuedWrite
from offline_library.models.base import CamelCaseModel


class HealthResponse(CamelCaseModel):
    """Liveness information."""

    status: str = Field(default="ok", description="Daemon health")
    version: str = Field(..., description="Engine version tag")
    daemon_version: str = Field(..., description="offlined package version")


class MessageResponse(CamelCaseModel):
    """Result of a control message."""

    state: EngineState = Field(..., description="Lifecycle state after the message")


class QueueListResponse(CamelCaseModel):
    """Pending writes in replay order."""

    entries: list[QueuedWrite] = Field(..., description="Pending writes, oldest first")
    total: int = Field(..., description="Number of pending writes")


class CancelResponse(CamelCaseModel):
    """Result of cancelling a queued write."""

    id: str = Field(..., description="Cancelled entry")
    cancelled: bool = Field(default=True, description="Whether the entry was removed")


class PartitionListResponse(CamelCaseModel):
    """Published cache partitions."""

    partitions: list[PartitionDescriptor] = Field(..., description="Partition descriptors")


class PushResponse(CamelCaseModel):
    """Result of a push delivery."""

    shown: bool = Field(..., description="Whether a notification was shown")
    notification: NotificationRecord | None = Field(default=None, description="Shown notification")


class NotificationClickResponse(CamelCaseModel):
    """Result of a notification interaction."""

    route: str | None = Field(default=None, description="Route navigated to, if any")


class ConnectivityResponse(CamelCaseModel):
    """Connectivity as last observed by the engine."""

    online: bool = Field(..., description="Whether the engine considers itself online")
    changed_at: datetime = Field(..., description="Last transition time")
