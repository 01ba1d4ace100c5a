"""
Unit tests for event fan-out to SSE subscribers.
"""

from collections.abc import Generator

import pytest

from offline_library import events
from offline_library.models import NotificationRecord
from offlined.services.global_events import GlobalEventService
from offlined.services.global_events import get_global_events
from offlined.services.global_events import publish_engine_event
from offlined.services.notification_surface import EventStreamNavigator
from offlined.services.notification_surface import EventStreamSurface
from offlined.streaming import EventQueueEmitter


@pytest.fixture
def fresh_events() -> Generator[EventQueueEmitter, None, None]:
    """Reset the global emitter around a test."""
    GlobalEventService._instance = None
    yield get_global_events()
    GlobalEventService._instance = None


@pytest.mark.unit
class TestEventQueueEmitter:
    """Test subscriber queues."""

    @pytest.mark.asyncio
    async def test_every_subscriber_receives_event(self) -> None:
        emitter = EventQueueEmitter()
        first = emitter.subscribe()
        second = emitter.subscribe()

        await emitter.emit("sync:completed", {"remaining": 0})

        assert first.get_nowait() == {"event": "sync:completed", "data": {"remaining": 0}}
        assert second.get_nowait()["event"] == "sync:completed"

    @pytest.mark.asyncio
    async def test_unsubscribed_queue_receives_nothing(self) -> None:
        emitter = EventQueueEmitter()
        queue = emitter.subscribe()
        emitter.unsubscribe(queue)
        emitter.unsubscribe(queue)

        await emitter.emit("write:queued", {})

        assert queue.empty()

    @pytest.mark.asyncio
    async def test_slow_subscriber_drops_oldest(self) -> None:
        """Test a full queue loses its oldest event instead of blocking."""
        emitter = EventQueueEmitter(max_queue_size=2)
        queue = emitter.subscribe()

        for n in range(3):
            await emitter.emit("write:queued", {"n": n})

        assert [queue.get_nowait()["data"]["n"] for _ in range(2)] == [1, 2]


@pytest.mark.unit
class TestGlobalEvents:
    """Test the daemon-wide event service."""

    def test_singleton(self, fresh_events: EventQueueEmitter) -> None:
        assert get_global_events() is fresh_events

    @pytest.mark.asyncio
    async def test_publish_adds_timestamp(self, fresh_events: EventQueueEmitter) -> None:
        queue = fresh_events.subscribe()

        await publish_engine_event(events.LIFECYCLE_ACTIVATED, {"version": "v2"})

        event = queue.get_nowait()
        assert event["event"] == "lifecycle:activated"
        assert event["data"]["version"] == "v2"
        assert "timestamp" in event["data"]

    @pytest.mark.asyncio
    async def test_notification_surface_publishes(self, fresh_events: EventQueueEmitter) -> None:
        queue = fresh_events.subscribe()
        record = NotificationRecord(id="n1", title="WAIS Notification", body="hi")

        await EventStreamSurface().show(record)
        await EventStreamSurface().close(record)
        await EventStreamNavigator().open_window("/dashboard")
        await EventStreamNavigator().focus_or_open("/")

        received = [queue.get_nowait() for _ in range(4)]
        assert [e["event"] for e in received] == [
            events.NOTIFICATION_SHOW,
            events.NOTIFICATION_CLOSE,
            events.NAVIGATION_OPEN,
            events.NAVIGATION_FOCUS,
        ]
        assert received[0]["data"]["body"] == "hi"
        assert received[2]["data"]["route"] == "/dashboard"
