"""Notification surface and navigator backed by the SSE event stream.

The daemon has no screen of its own: showing a notification or opening a
window means telling the connected host application to do it.
"""

import logging

from offline_library import events
from offline_library.models import NotificationRecord

from .global_events import publish_engine_event

logger = logging.getLogger(__name__)


class EventStreamSurface:
    """Shows and closes notifications by publishing events."""

    async def show(self, record: NotificationRecord) -> None:
        await publish_engine_event(events.NOTIFICATION_SHOW, record.model_dump(mode="json", by_alias=True))

    async def close(self, record: NotificationRecord) -> None:
        await publish_engine_event(events.NOTIFICATION_CLOSE, {"id": record.id})


class EventStreamNavigator:
    """Asks the host application to open or focus a route."""

    async def open_window(self, route: str) -> None:
        logger.info(f"Requesting new window for {route}")
        await publish_engine_event(events.NAVIGATION_OPEN, {"route": route})

    async def focus_or_open(self, route: str) -> None:
        await publish_engine_event(events.NAVIGATION_FOCUS, {"route": route})
