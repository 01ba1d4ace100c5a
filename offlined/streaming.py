"""Event fan-out for SSE subscribers."""

import asyncio
import logging
from typing import Any

logger = logging.getLogger(__name__)


class EventQueueEmitter:
    """Fans events out to subscriber queues.

    Each subscriber gets its own bounded queue. A subscriber that stops
    reading loses its oldest events instead of blocking the emitter.
    """

    def __init__(self, max_queue_size: int = 256) -> None:
        self.queues: list[asyncio.Queue[dict[str, Any]]] = []
        self.max_queue_size = max_queue_size
        self._lock = asyncio.Lock()

    def subscribe(self) -> asyncio.Queue[dict[str, Any]]:
        """Create new subscriber queue.

        Returns:
            asyncio.Queue that will receive all emitted events
        """
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self.max_queue_size)
        self.queues.append(queue)
        return queue

    async def emit(self, event_type: str, data: dict[str, Any]) -> None:
        """Emit event to all subscriber queues.

        Args:
            event_type: Event type identifier (e.g., "sync:completed")
            data: Event payload
        """
        event = {"event": event_type, "data": data}
        async with self._lock:
            for queue in self.queues:
                if queue.full():
                    dropped = queue.get_nowait()
                    logger.warning(f"Subscriber queue full, dropped {dropped['event']} event")
                queue.put_nowait(event)

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        """Remove subscriber queue.

        Args:
            queue: Queue to remove
        """
        if queue in self.queues:
            self.queues.remove(queue)
