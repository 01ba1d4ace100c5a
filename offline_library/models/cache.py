"""Cache models: stored response snapshots and partition descriptors."""

import json
from datetime import UTC
from datetime import datetime
from typing import Any

from pydantic import ConfigDict
from pydantic import Field
from pydantic import field_validator

from .base import Base64Body
from .base import CamelCaseModel

# Headers that describe the transfer rather than the content. Bodies are
# stored decoded, so these no longer apply once buffered.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
        "content-encoding",
        "content-length",
    }
)


class ResponseSnapshot(CamelCaseModel):
    """Fully buffered, immutable response.

    A snapshot can be handed to any number of consumers (the caller, the
    cache writer) because the body is plain bytes rather than a stream.
    """

    model_config = ConfigDict(frozen=True)

    status: int = Field(ge=100, le=599, description="HTTP status code")
    headers: dict[str, str] = Field(default_factory=dict, description="Response headers (lower-cased names)")
    body: Base64Body = Field(default=b"", description="Response body")
    url: str | None = Field(default=None, description="URL the response was obtained from")
    stored_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Snapshot timestamp")

    @field_validator("headers")
    @classmethod
    def normalize_headers(cls, v: dict[str, str]) -> dict[str, str]:
        return {name.lower(): value for name, value in v.items() if name.lower() not in HOP_BY_HOP_HEADERS}

    @property
    def ok(self) -> bool:
        """True for 2xx responses."""
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str | None:
        return self.headers.get("content-type")

    def text(self) -> str:
        """Decode the body as UTF-8 text."""
        return self.body.decode("utf-8", errors="replace")

    def json_body(self) -> Any:
        """Parse the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON
        """
        return json.loads(self.body)

    def with_headers(self, **extra: str) -> "ResponseSnapshot":
        """Copy of this snapshot with additional headers.

        Keyword names use underscores for dashes: ``x_offline_reason="..."``.
        """
        headers = dict(self.headers)
        headers.update({name.replace("_", "-").lower(): value for name, value in extra.items()})
        return self.model_copy(update={"headers": headers})

    @classmethod
    def from_text(
        cls,
        status: int,
        text: str,
        content_type: str = "text/plain; charset=utf-8",
        **headers: str,
    ) -> "ResponseSnapshot":
        """Build a snapshot from text content."""
        snapshot = cls(status=status, headers={"content-type": content_type}, body=text.encode("utf-8"))
        return snapshot.with_headers(**headers) if headers else snapshot

    @classmethod
    def from_json(cls, status: int, data: Any, **headers: str) -> "ResponseSnapshot":
        """Build a snapshot with a JSON body."""
        return cls.from_text(status, json.dumps(data), content_type="application/json", **headers)


class CacheEntry(CamelCaseModel):
    """On-disk record of one cached response."""

    fingerprint: str = Field(description="Request fingerprint the snapshot is stored under")
    snapshot: ResponseSnapshot = Field(description="Stored response")


class PartitionDescriptor(CamelCaseModel):
    """Descriptor stored alongside each cache partition.

    Stored in cache/partitions/{name}/_partition.json.
    """

    name: str = Field(description="Partition name, e.g. static-v1")
    kind: str = Field(description="Partition kind (static, dynamic)")
    version: str = Field(description="Version tag the partition belongs to")
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC), description="Creation timestamp")

    @classmethod
    def from_name(cls, name: str) -> "PartitionDescriptor":
        """Derive kind and version from a <kind>-<version> name."""
        kind, sep, version = name.partition("-")
        if not sep:
            return cls(name=name, kind=name, version="")
        return cls(name=name, kind=kind, version=version)
