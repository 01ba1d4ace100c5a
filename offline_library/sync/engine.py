"""Replay of queued writes.

A drain walks a snapshot of the pending queue in FIFO order and replays each
entry against its endpoint. Only a 2xx reply removes an entry; unreachable
networks, timeouts, server rejections and unexpected replay errors all
leave it queued with the attempt recorded, and the drain moves on to the
next entry. Payloads are replayed opaquely.
"""

import asyncio
import logging
from datetime import UTC
from datetime import datetime

from .. import events
from ..errors import QueueEntryNotFoundError
from ..errors import TransportUnreachableError
from ..events import EventCallback
from ..fetch.transport import NetworkTransport
from ..models.lifecycle import DrainReport
from ..models.lifecycle import SyncState
from ..models.queue import QueuedWrite
from ..models.queue import ReplayRejection
from ..models.requests import InterceptedRequest
from ..queue.manager import WriteQueue

logger = logging.getLogger(__name__)

SYNC_TAGS = frozenset({"background-sync", "periodic-sync", "connectivity-restored"})


class SyncEngine:
    """Drains the write queue when triggered.

    Only one drain runs at a time. A trigger that arrives mid-drain returns
    a coalesced report straight away and replays nothing; the running drain
    already covers the queue.
    """

    def __init__(
        self,
        queue: WriteQueue,
        transport: NetworkTransport,
        replay_timeout: float = 15.0,
        on_event: EventCallback | None = None,
    ) -> None:
        """Initialize sync engine.

        Args:
            queue: Durable write queue
            transport: Network transport used for replays
            replay_timeout: Upper bound in seconds for one replay
            on_event: Optional async callback for sync events
        """
        self.queue = queue
        self.transport = transport
        self.replay_timeout = replay_timeout
        self.on_event = on_event
        self._state = SyncState.IDLE
        self.last_report: DrainReport | None = None

    @property
    def state(self) -> SyncState:
        return self._state

    async def _emit(self, event_type: str, data: dict) -> None:
        if self.on_event is not None:
            await self.on_event(event_type, data)

    async def trigger(self, reason: str) -> DrainReport:
        """Drain the queue unless a drain is already running.

        Args:
            reason: Signal that caused the trigger (e.g. background-sync)

        Returns:
            Drain report; ``coalesced`` is True if nothing was replayed
            because another drain was in progress
        """
        # Check-and-set with no await in between
        if self._state == SyncState.DRAINING:
            logger.debug(f"Sync trigger '{reason}' coalesced into running drain")
            return DrainReport(trigger=reason, coalesced=True, finished_at=datetime.now(UTC))
        self._state = SyncState.DRAINING

        report = DrainReport(trigger=reason)
        try:
            await self._drain(report)
        finally:
            self._state = SyncState.IDLE
            report.finished_at = datetime.now(UTC)

        self.last_report = report
        logger.info(
            f"Drain ({reason}) finished: {len(report.succeeded)} replayed, "
            f"{len(report.failed)} failed, {report.remaining} remaining"
        )
        await self._emit(events.SYNC_COMPLETED, report.model_dump(mode="json", by_alias=True))
        return report

    async def _drain(self, report: DrainReport) -> None:
        pending = await self.queue.list_pending()
        for entry in pending:
            report.attempted += 1
            await self._replay(entry, report)
        report.remaining = await self.queue.count()

    async def _replay(self, entry: QueuedWrite, report: DrainReport) -> None:
        request = InterceptedRequest(
            method=entry.method,
            url=entry.endpoint,
            headers=entry.headers,
            body=entry.payload,
        )

        try:
            snapshot = await asyncio.wait_for(self.transport.fetch(request), timeout=self.replay_timeout)
        except TransportUnreachableError as e:
            await self._record_failure(entry, report, e.reason)
            return
        except TimeoutError:
            await self._record_failure(entry, report, f"timed out after {self.replay_timeout}s")
            return
        except Exception as e:
            # Counts as a failed attempt; later entries still replay
            logger.error(f"Replay of {entry.id} ({entry.endpoint}) failed: {e}", exc_info=True)
            await self._record_failure(entry, report, f"{type(e).__name__}: {e}")
            return

        if snapshot.ok:
            await self.queue.dequeue_succeeded(entry.id)
            report.succeeded.append(entry.id)
            return

        rejection = ReplayRejection(
            entry_id=entry.id,
            endpoint=entry.endpoint,
            status=snapshot.status,
            body=snapshot.text(),
        )
        logger.warning(f"Server rejected replay of {entry.id} ({entry.endpoint}) with {snapshot.status}")
        await self._record_failure(entry, report, f"server rejected with status {snapshot.status}", snapshot.status)
        report.rejected.append(rejection)
        await self._emit(events.SYNC_REPLAY_REJECTED, rejection.model_dump(mode="json", by_alias=True))

    async def _record_failure(
        self,
        entry: QueuedWrite,
        report: DrainReport,
        error: str,
        status: int | None = None,
    ) -> None:
        report.failed.append(entry.id)
        try:
            await self.queue.record_attempt(entry.id, error=error, status=status)
        except QueueEntryNotFoundError:
            # Cancelled by the host while the replay was in flight
            logger.info(f"Queued write {entry.id} was cancelled during replay")
