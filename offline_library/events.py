"""Event names emitted by the offline engine.

Events are delivered to an optional async callback as ``(event_type, data)``.
The daemon forwards them to its SSE event stream.
"""

from collections.abc import Awaitable
from collections.abc import Callable
from typing import Any

EventCallback = Callable[[str, dict[str, Any]], Awaitable[None]]

LIFECYCLE_INSTALLING = "lifecycle:installing"
LIFECYCLE_INSTALLED = "lifecycle:installed"
LIFECYCLE_INSTALL_FAILED = "lifecycle:install-failed"
LIFECYCLE_WAITING = "lifecycle:waiting"
LIFECYCLE_ACTIVATED = "lifecycle:activated"

CONNECTIVITY_LOST = "connectivity:lost"
CONNECTIVITY_RESTORED = "connectivity:restored"

WRITE_QUEUED = "write:queued"

SYNC_COMPLETED = "sync:completed"
SYNC_REPLAY_REJECTED = "sync:replay-rejected"

NOTIFICATION_SHOW = "notification:show"
NOTIFICATION_CLOSE = "notification:close"
NAVIGATION_OPEN = "navigation:open"
NAVIGATION_FOCUS = "navigation:focus"
