"""Request models for offlined API.

Pydantic models for validating incoming control requests.
"""

from typing import Any

from pydantic import Field

from offline_library.models.base import CamelCaseModel


class ControlMessageRequest(CamelCaseModel):
    """Control message from the host application.

    Attributes:
        type: Message type (SKIP_WAITING activates a waiting version)
    """

    type: str = Field(..., description="Message type, e.g. SKIP_WAITING")


class SyncRequest(CamelCaseModel):
    """Background sync signal.

    Attributes:
        tag: Sync tag
    """

    tag: str = Field(default="background-sync", description="Sync tag")


class PushRequest(CamelCaseModel):
    """Push message delivered to the daemon.

    Attributes:
        payload: Plain text, JSON text or an object with title/body/actions/data
    """

    payload: str | dict[str, Any] | None = Field(default=None, description="Push payload")


class NotificationClickRequest(CamelCaseModel):
    """User interaction with a shown notification.

    Attributes:
        notification_id: Id of the notification
        action: Clicked action (None for a click on the body)
    """

    notification_id: str = Field(..., description="Notification identifier")
    action: str | None = Field(default=None, description="Clicked action, or None for a body click")
