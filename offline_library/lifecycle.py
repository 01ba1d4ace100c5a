"""Persistence of the engine lifecycle record."""

import asyncio
import logging
from datetime import UTC
from datetime import datetime
from pathlib import Path

from pydantic import ValidationError

from .models.lifecycle import LifecycleRecord
from .storage.files import load_json
from .storage.files import save_json
from .storage.paths import get_state_dir

logger = logging.getLogger(__name__)


class LifecycleStore:
    """Reads and writes state/lifecycle.json.

    The record survives restarts so a waiting version can take over once the
    clients of the previous version are gone.
    """

    def __init__(self, state_dir: Path | None = None) -> None:
        self.state_dir = Path(state_dir) if state_dir else get_state_dir()
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.state_dir / "lifecycle.json"

    def _load(self) -> LifecycleRecord:
        data = load_json(self.path)
        if data is None:
            return LifecycleRecord()
        try:
            return LifecycleRecord.model_validate(data)
        except ValidationError as e:
            logger.error(f"Unreadable lifecycle record {self.path}, starting fresh: {e}")
            return LifecycleRecord()

    async def load(self) -> LifecycleRecord:
        return await asyncio.to_thread(self._load)

    async def save(self, record: LifecycleRecord) -> LifecycleRecord:
        """Persist a record, stamping its update time.

        Args:
            record: Record to persist

        Returns:
            The persisted record
        """
        record = record.model_copy(update={"updated_at": datetime.now(UTC)})
        await asyncio.to_thread(save_json, self.path, record.model_dump(mode="json", by_alias=True))
        return record
