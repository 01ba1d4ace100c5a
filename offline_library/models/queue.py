"""Durable write queue models."""

from datetime import UTC
from datetime import datetime

from pydantic import Field
from pydantic import field_validator

from .base import Base64Body
from .base import CamelCaseModel


class QueuedWrite(CamelCaseModel):
    """A write operation waiting to be replayed.

    Created when a mutating request fails because the network is
    unreachable. Stored in state/queue/{id}.json. Entries are replayed in
    ascending ``sequence`` order and removed only after a successful replay
    or an explicit cancellation by the host.
    """

    id: str = Field(description="Locally generated identifier (UUID)")
    sequence: int = Field(ge=0, description="Monotonic enqueue order")
    method: str = Field(default="POST", description="HTTP method used for replay")
    endpoint: str = Field(description="Absolute URL the write is replayed against")
    headers: dict[str, str] = Field(default_factory=dict, description="Headers replayed with the payload")
    payload: Base64Body = Field(default=b"", description="Serialized request body, replayed opaquely")
    enqueued_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Enqueue timestamp")
    attempt_count: int = Field(default=0, ge=0, description="Number of replay attempts so far")
    last_attempt_at: datetime | None = Field(default=None, description="Timestamp of the last replay attempt")
    last_error: str | None = Field(default=None, description="Reason the last replay failed")
    last_status: int | None = Field(default=None, description="Status of the last rejected replay")

    @field_validator("method")
    @classmethod
    def normalize_method(cls, v: str) -> str:
        return v.upper()


class ReplayRejection(CamelCaseModel):
    """A replay the server answered with a non-success status."""

    entry_id: str = Field(description="Queued write that was rejected")
    endpoint: str = Field(description="Replay target")
    status: int = Field(description="Status returned by the server")
    body: str = Field(default="", description="Response body (text)")
