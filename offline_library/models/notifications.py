"""Notification models."""

from datetime import UTC
from datetime import datetime
from typing import Any

from pydantic import Field

from .base import CamelCaseModel


class NotificationAction(CamelCaseModel):
    """An action button offered on a notification."""

    action: str = Field(description="Action identifier reported back on interaction")
    title: str = Field(description="Button label")
    icon: str | None = Field(default=None, description="Button icon URL")
    route: str | None = Field(default=None, description="In-app route opened by this action")


class NotificationRecord(CamelCaseModel):
    """A notification presented to the user.

    Transient: owned by the dispatcher only while it is being presented.
    """

    id: str = Field(description="Notification identifier")
    title: str = Field(description="Notification title")
    body: str = Field(default="", description="Notification body")
    delivered_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Delivery timestamp")
    icon: str | None = Field(default=None, description="Icon URL")
    badge: str | None = Field(default=None, description="Badge URL")
    vibrate: list[int] = Field(default_factory=list, description="Vibration pattern in milliseconds")
    actions: list[NotificationAction] = Field(default_factory=list, description="Offered actions")
    data: dict[str, Any] = Field(default_factory=dict, description="Opaque payload data")

    def find_action(self, action: str) -> NotificationAction | None:
        for candidate in self.actions:
            if candidate.action == action:
                return candidate
        return None
