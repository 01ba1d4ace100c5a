"""Synthesized responses for offline conditions.

Each synthesized response carries an ``x-offline-reason`` header so the host
can tell an offline condition apart from anything the server returned.
"""

from ..models.cache import ResponseSnapshot
from ..models.queue import QueuedWrite

REASON_HEADER = "x-offline-reason"
QUEUED_ID_HEADER = "x-offline-queued-id"

DATA_UNAVAILABLE = "data-unavailable"
NETWORK_UNAVAILABLE = "network-unavailable"
OFFLINE_PAGE = "offline-page"
WRITE_QUEUED = "write-queued"
BAD_RESPONSE = "bad-response"

OFFLINE_PAGE_HTML = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Offline</title></head>
<body>
<h1>You're offline</h1>
<p>This page isn't available offline. Cached pages and data are still available,
and new transactions will sync when your connection returns.</p>
</body>
</html>
"""


def data_unavailable(status: int = 503) -> ResponseSnapshot:
    """API data requested offline with nothing cached.

    Args:
        status: Reserved status code for this condition

    Returns:
        Structured JSON error response
    """
    return ResponseSnapshot.from_json(
        status,
        {"error": "Offline", "message": "This data is not available offline"},
        x_offline_reason=DATA_UNAVAILABLE,
    )


def network_unavailable() -> ResponseSnapshot:
    """Generic failure for a non-navigation miss without network."""
    return ResponseSnapshot.from_text(503, "Offline", x_offline_reason=NETWORK_UNAVAILABLE)


def builtin_offline_page() -> ResponseSnapshot:
    """Minimal offline page used when the offline route was never cached."""
    return ResponseSnapshot.from_text(
        503,
        OFFLINE_PAGE_HTML,
        content_type="text/html; charset=utf-8",
        x_offline_reason=OFFLINE_PAGE,
    )


def write_queued(entry: QueuedWrite) -> ResponseSnapshot:
    """Write accepted locally for later replay."""
    return ResponseSnapshot.from_json(
        202,
        {
            "queued": True,
            "id": entry.id,
            "message": "Saved offline. It will sync when your connection returns.",
        },
        x_offline_reason=WRITE_QUEUED,
        x_offline_queued_id=entry.id,
    )


def bad_response(reason: str) -> ResponseSnapshot:
    """A server answered but its response could not be used.

    Args:
        reason: Name of the client error (e.g. TooManyRedirects, DecodingError)
    """
    return ResponseSnapshot.from_text(502, f"Bad response from server: {reason}", x_offline_reason=BAD_RESPONSE)
