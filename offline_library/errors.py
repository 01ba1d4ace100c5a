"""Error taxonomy for the offline engine.

- TransportUnreachableError: no response could be obtained at all. Recovered
  locally (cache fallback on reads, queueing on writes) wherever a fallback exists.
- ServerRejectedError: a response arrived but signals an application-level
  failure. Surfaced as-is, never queued, never served from stale cache.
- PrecacheError: install could not populate the static partition.
"""


class OfflineEngineError(Exception):
    """Base class for offline engine errors."""


class TransportUnreachableError(OfflineEngineError):
    """The network could not be reached for a request."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Network unreachable for {url}: {reason}")


class ServerRejectedError(OfflineEngineError):
    """The server answered with a non-success status."""

    def __init__(self, url: str, status: int, body: bytes = b"") -> None:
        self.url = url
        self.status = status
        self.body = body
        super().__init__(f"Server rejected {url} with status {status}")


class PrecacheError(OfflineEngineError):
    """One or more manifest entries could not be fetched during install.

    Attributes:
        version: Version whose install failed
        failures: Mapping of manifest entry to failure reason
    """

    def __init__(self, version: str, failures: dict[str, str]) -> None:
        self.version = version
        self.failures = failures
        summary = ", ".join(f"{url} ({reason})" for url, reason in failures.items())
        super().__init__(f"Precache for {version} failed: {summary}")


class InvalidPartitionNameError(OfflineEngineError, ValueError):
    """Partition names must be safe to use as directory names."""


class QueueEntryNotFoundError(OfflineEngineError, KeyError):
    """No queued write exists with the given id."""

    def __str__(self) -> str:
        return f"Queued write not found: {self.args[0]}"


class QueueFullError(OfflineEngineError):
    """The write queue reached its configured bound."""
