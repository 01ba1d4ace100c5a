"""Engine lifecycle, precache, sync and status models."""

from datetime import UTC
from datetime import datetime
from enum import Enum

from pydantic import Field

from .base import CamelCaseModel
from .queue import ReplayRejection


class EngineState(str, Enum):
    """Engine lifecycle state.

    State transitions:
    - NEW -> INSTALLING: install started
    - INSTALLING -> INSTALLED: every manifest entry cached and published
    - INSTALLING -> REDUNDANT: precache failed; previous version keeps serving
    - INSTALLED -> ACTIVATING -> ACTIVATED: old partitions cleaned up,
      this version now serves
    """

    NEW = "new"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class SyncState(str, Enum):
    """Sync engine state."""

    IDLE = "idle"
    DRAINING = "draining"


class LifecycleRecord(CamelCaseModel):
    """Persisted lifecycle state.

    Stored in state/lifecycle.json.
    """

    active_version: str | None = Field(default=None, description="Version currently serving")
    waiting_version: str | None = Field(default=None, description="Installed version waiting to activate")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Last update timestamp")


class PrecacheReport(CamelCaseModel):
    """Result of a successful install."""

    version: str = Field(description="Installed version")
    partition: str = Field(description="Published static partition")
    entries: list[str] = Field(default_factory=list, description="Cached URLs, in manifest order")
    installed_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Install timestamp")


class DrainReport(CamelCaseModel):
    """Result of one sync trigger."""

    trigger: str = Field(description="Signal that started the drain")
    coalesced: bool = Field(default=False, description="True if a drain was already running")
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Drain start")
    finished_at: datetime | None = Field(default=None, description="Drain end")
    attempted: int = Field(default=0, description="Replays attempted")
    succeeded: list[str] = Field(default_factory=list, description="Entries replayed and removed")
    failed: list[str] = Field(default_factory=list, description="Entries left queued after a failure")
    rejected: list[ReplayRejection] = Field(default_factory=list, description="Replays the server rejected")
    remaining: int = Field(default=0, description="Entries still pending after the drain")


class EngineStatus(CamelCaseModel):
    """Snapshot of engine state for the host."""

    version: str = Field(description="Version this engine was started with")
    state: EngineState = Field(description="Lifecycle state")
    active_version: str | None = Field(default=None, description="Version currently serving")
    waiting_version: str | None = Field(default=None, description="Installed version waiting to activate")
    online: bool = Field(description="Last observed connectivity")
    sync_state: SyncState = Field(description="Sync engine state")
    pending_writes: int = Field(description="Queued writes awaiting replay")
    partitions: list[str] = Field(default_factory=list, description="Published cache partitions")
