"""SSE event streaming endpoint.

Streams engine events (lifecycle, connectivity, queue, sync, notifications
and navigation requests) to the host application.
"""

import asyncio
import json
import logging
from datetime import UTC
from datetime import datetime

from fastapi import APIRouter
from sse_starlette import ServerSentEvent
from sse_starlette.sse import EventSourceResponse

from offlined.services.global_events import get_global_events

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/_offline/events", tags=["events"])

KEEPALIVE_SECONDS = 30.0


@router.get("")
async def event_stream() -> EventSourceResponse:
    """SSE stream of engine events.

    Events:
        - connected: Initial connection established
        - keepalive: Periodic heartbeat
        - lifecycle:installing / installed / install-failed / waiting / activated
        - connectivity:lost / connectivity:restored
        - write:queued
        - sync:completed / sync:replay-rejected
        - notification:show / notification:close
        - navigation:open / navigation:focus

    Returns:
        SSE EventSourceResponse
    """

    async def event_generator():
        emitter = get_global_events()
        queue = emitter.subscribe()

        try:
            yield ServerSentEvent(
                data=json.dumps({"timestamp": datetime.now(UTC).isoformat()}),
                event="connected",
            )
            logger.info("Event stream connected")

            while True:
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                    yield ServerSentEvent(data=json.dumps(event["data"]), event=event["event"])
                except TimeoutError:
                    yield ServerSentEvent(
                        data=json.dumps({"timestamp": datetime.now(UTC).isoformat()}),
                        event="keepalive",
                    )

        except asyncio.CancelledError:
            logger.info("Event stream disconnected")
            raise

        finally:
            emitter.unsubscribe(queue)

    return EventSourceResponse(event_generator())
