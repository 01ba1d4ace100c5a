"""Durable queue of write operations awaiting replay."""

import asyncio
import logging
import uuid
from datetime import UTC
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from ..errors import QueueEntryNotFoundError
from ..errors import QueueFullError
from ..models.queue import QueuedWrite
from ..storage.files import atomic_write_text
from ..storage.files import load_json
from ..storage.files import remove_file
from ..storage.paths import get_queue_dir

logger = logging.getLogger(__name__)


class WriteQueue:
    """Manages queued writes and their persistence.

    Every mutation is an atomic, fsynced file write or unlink, so a restart
    never loses an acknowledged entry. Replay order is the ``sequence``
    assigned at enqueue time (always greater than any pending entry's).

    Storage structure:
        state/queue/
            {entry_id}.json     # One QueuedWrite per file
    """

    def __init__(self, storage_dir: Path | None = None, max_pending: int | None = None) -> None:
        """Initialize with storage directory.

        Args:
            storage_dir: Queue directory (default: $OFFLINED_HOME/state/queue)
            max_pending: Optional bound on pending entries (None = unbounded)
        """
        self.storage_dir = Path(storage_dir) if storage_dir else get_queue_dir()
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        self.max_pending = max_pending
        self._lock = asyncio.Lock()

    def _entry_path(self, entry_id: str) -> Path:
        return self.storage_dir / f"{entry_id}.json"

    # --- Reads ---

    def _load_all(self) -> list[QueuedWrite]:
        entries = []
        for entry_file in self.storage_dir.glob("*.json"):
            data = load_json(entry_file)
            if data is None:
                continue
            try:
                entries.append(QueuedWrite.model_validate(data))
            except ValidationError as e:
                logger.error(f"Unreadable queued write {entry_file}: {e}")
        entries.sort(key=lambda entry: (entry.sequence, entry.enqueued_at))
        return entries

    def _load(self, entry_id: str) -> QueuedWrite | None:
        data = load_json(self._entry_path(entry_id))
        if data is None:
            return None
        return QueuedWrite.model_validate(data)

    async def list_pending(self) -> list[QueuedWrite]:
        """List pending writes in replay (FIFO) order.

        Returns:
            Pending entries, oldest first
        """
        return await asyncio.to_thread(self._load_all)

    async def get(self, entry_id: str) -> QueuedWrite | None:
        """Get a queued write by id.

        Args:
            entry_id: Entry identifier

        Returns:
            Entry if pending, None otherwise
        """
        return await asyncio.to_thread(self._load, entry_id)

    async def count(self) -> int:
        return len(await self.list_pending())

    # --- Mutations ---

    async def enqueue(
        self,
        endpoint: str,
        payload: bytes = b"",
        method: str = "POST",
        headers: dict[str, str] | None = None,
    ) -> QueuedWrite:
        """Append a write to the queue.

        Args:
            endpoint: Absolute URL to replay against
            payload: Serialized request body
            method: HTTP method used for replay
            headers: Headers replayed with the payload (e.g. content-type)

        Returns:
            Created entry with a fresh local id and zero attempts

        Raises:
            QueueFullError: If max_pending is set and reached
        """
        async with self._lock:
            pending = await asyncio.to_thread(self._load_all)
            if self.max_pending is not None and len(pending) >= self.max_pending:
                raise QueueFullError(f"Write queue is full ({self.max_pending} pending)")

            sequence = pending[-1].sequence + 1 if pending else 0
            entry = QueuedWrite(
                id=str(uuid.uuid4()),
                sequence=sequence,
                method=method,
                endpoint=endpoint,
                headers=headers or {},
                payload=payload,
            )
            await asyncio.to_thread(atomic_write_text, self._entry_path(entry.id), entry.model_dump_json(indent=2))

        logger.info(f"Queued {entry.method} {entry.endpoint} as {entry.id} (sequence {entry.sequence})")
        return entry

    async def dequeue_succeeded(self, entry_id: str) -> bool:
        """Remove an entry after a successful replay.

        Args:
            entry_id: Entry that was replayed

        Returns:
            True if removed, False if it was no longer queued
        """
        async with self._lock:
            removed = await asyncio.to_thread(remove_file, self._entry_path(entry_id))

        if removed:
            logger.info(f"Removed replayed write {entry_id}")
        return removed

    async def record_attempt(
        self,
        entry_id: str,
        error: str | None = None,
        status: int | None = None,
    ) -> QueuedWrite:
        """Record a failed replay attempt.

        Args:
            entry_id: Entry that was attempted
            error: Failure reason
            status: Status code when the server rejected the replay

        Returns:
            Updated entry with incremented attempt count

        Raises:
            QueueEntryNotFoundError: If the entry is no longer queued
        """
        async with self._lock:
            entry = await asyncio.to_thread(self._load, entry_id)
            if entry is None:
                raise QueueEntryNotFoundError(entry_id)

            updated = entry.model_copy(
                update={
                    "attempt_count": entry.attempt_count + 1,
                    "last_attempt_at": datetime.now(UTC),
                    "last_error": error,
                    "last_status": status,
                }
            )
            await asyncio.to_thread(atomic_write_text, self._entry_path(entry_id), updated.model_dump_json(indent=2))

        logger.info(f"Replay attempt {updated.attempt_count} failed for {entry_id}: {error}")
        return updated

    async def cancel(self, entry_id: str) -> bool:
        """Drop an entry at the host's request.

        Args:
            entry_id: Entry to cancel

        Returns:
            True if cancelled, False if not found
        """
        async with self._lock:
            removed = await asyncio.to_thread(remove_file, self._entry_path(entry_id))

        if removed:
            logger.info(f"Cancelled queued write {entry_id}")
        return removed
