"""Daemon-wide fan-out of engine events.

The engine reports lifecycle, connectivity, queue, sync and notification
events through one callback. Here that callback publishes onto a single
EventQueueEmitter which every SSE client subscribes to.
"""

from typing import Any

from offlined.models.events import EngineEvent
from offlined.streaming import EventQueueEmitter


class GlobalEventService:
    """Holds the process-wide emitter."""

    _instance: EventQueueEmitter | None = None

    @classmethod
    def get_instance(cls) -> EventQueueEmitter:
        if cls._instance is None:
            cls._instance = EventQueueEmitter()
        return cls._instance

    @classmethod
    async def publish(cls, event: EngineEvent) -> None:
        """Publish an engine event, stamping its payload with the event time.

        Args:
            event: Event to publish
        """
        payload = {"timestamp": event.timestamp.isoformat(), **event.data}
        await cls.get_instance().emit(event.event_type, payload)


async def publish_engine_event(event_type: str, data: dict[str, Any]) -> None:
    """Engine event callback: forward to SSE subscribers."""
    await GlobalEventService.publish(EngineEvent(event_type=event_type, data=data))


def get_global_events() -> EventQueueEmitter:
    """Emitter the SSE endpoint subscribes to."""
    return GlobalEventService.get_instance()
