"""Event models for SSE streaming.

Engine events are wrapped in EngineEvent and published on the global SSE
endpoint at /_offline/events.
"""

from datetime import UTC
from datetime import datetime
from typing import Any

from pydantic import BaseModel
from pydantic import Field


class EngineEvent(BaseModel):
    """An event emitted by the offline engine or the daemon."""

    event_type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    data: dict[str, Any] = Field(default_factory=dict)
