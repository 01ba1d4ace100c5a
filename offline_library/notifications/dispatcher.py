"""Push notification presentation and interaction handling.

The dispatcher is platform-neutral: it builds NotificationRecords from push
payloads and hands them to a NotificationSurface, and it turns user
interactions into Navigator calls.
"""

import itertools
import json
import logging
import time
import uuid
from typing import Any
from typing import Protocol

from ..models.notifications import NotificationAction
from ..models.notifications import NotificationRecord

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "WAIS Notification"


def default_actions() -> list[NotificationAction]:
    return [
        NotificationAction(action="explore", title="View", route="/dashboard"),
        NotificationAction(action="close", title="Close"),
    ]


class NotificationSurface(Protocol):
    """Where notifications are shown."""

    async def show(self, record: NotificationRecord) -> None: ...

    async def close(self, record: NotificationRecord) -> None: ...


class Navigator(Protocol):
    """Opens or focuses application windows."""

    async def open_window(self, route: str) -> None: ...

    async def focus_or_open(self, route: str) -> None: ...


class NotificationDispatcher:
    """Presents push notifications and routes their interactions."""

    def __init__(
        self,
        surface: NotificationSurface,
        navigator: Navigator,
        title: str = DEFAULT_TITLE,
        icon: str | None = "/icon-192x192.png",
        badge: str | None = "/icon-72x72.png",
        vibrate: list[int] | None = None,
        actions: list[NotificationAction] | None = None,
        dismiss_actions: list[str] | None = None,
        default_route: str = "/",
    ) -> None:
        """Initialize dispatcher.

        Args:
            surface: Surface notifications are shown on
            navigator: Navigator used for click-through
            title: Title used when the payload carries none
            icon: Default icon URL
            badge: Default badge URL
            vibrate: Default vibration pattern (default: [100, 50, 100])
            actions: Default actions (default: explore -> /dashboard, close)
            dismiss_actions: Actions that only close the notification
            default_route: Route focused or opened on a body click
        """
        self.surface = surface
        self.navigator = navigator
        self.title = title
        self.icon = icon
        self.badge = badge
        self.vibrate = list(vibrate) if vibrate is not None else [100, 50, 100]
        self.actions = list(actions) if actions is not None else default_actions()
        self.dismiss_actions = set(dismiss_actions) if dismiss_actions is not None else {"close"}
        self.default_route = default_route
        self._keys = itertools.count(1)

    def build_record(self, payload: bytes | str | dict[str, Any] | None) -> NotificationRecord | None:
        """Build a notification from a push payload.

        Plain text becomes the body. A JSON object may set ``title``,
        ``body``, ``actions`` and ``data``; anything it leaves out falls back
        to the defaults.

        Args:
            payload: Raw push payload

        Returns:
            Record to show, or None for an empty payload
        """
        if isinstance(payload, bytes):
            payload = payload.decode("utf-8", errors="replace")
        if payload is None or (isinstance(payload, str) and not payload.strip()):
            return None

        fields: dict[str, Any] = {}
        if isinstance(payload, dict):
            fields = payload
        else:
            try:
                parsed = json.loads(payload)
            except ValueError:
                parsed = None
            if isinstance(parsed, dict):
                fields = parsed
            else:
                fields = {"body": payload}

        actions = self.actions
        if "actions" in fields:
            actions = [NotificationAction.model_validate(action) for action in fields["actions"]]
        # Actions named after a configured default inherit its route
        known_routes = {action.action: action.route for action in self.actions}
        actions = [
            action if action.route or action.action not in known_routes
            else action.model_copy(update={"route": known_routes[action.action]})
            for action in actions
        ]

        data = {"dateOfArrival": int(time.time() * 1000), "primaryKey": next(self._keys)}
        data.update(fields.get("data") or {})

        return NotificationRecord(
            id=str(uuid.uuid4()),
            title=str(fields.get("title") or self.title),
            body=str(fields.get("body") or ""),
            icon=fields.get("icon", self.icon),
            badge=fields.get("badge", self.badge),
            vibrate=fields.get("vibrate", self.vibrate),
            actions=actions,
            data=data,
        )

    async def handle_push(self, payload: bytes | str | dict[str, Any] | None) -> NotificationRecord | None:
        """Show a notification for a push payload.

        Args:
            payload: Raw push payload

        Returns:
            The shown record, or None if the payload was empty
        """
        record = self.build_record(payload)
        if record is None:
            logger.debug("Ignoring empty push payload")
            return None

        await self.surface.show(record)
        logger.info(f"Showed notification {record.id}: {record.title}")
        return record

    async def handle_interaction(self, record: NotificationRecord, action: str | None = None) -> str | None:
        """Handle a click on a notification or one of its actions.

        The notification is always closed. A routed action opens a window on
        its route, a click on the body focuses an existing window (or opens
        one) on the default route, and dismiss or unknown actions do nothing
        further.

        Args:
            record: Notification that was interacted with
            action: Action identifier, or None for a body click

        Returns:
            Route navigated to, or None
        """
        await self.surface.close(record)

        if not action:
            await self.navigator.focus_or_open(self.default_route)
            return self.default_route

        if action in self.dismiss_actions:
            return None

        matched = record.find_action(action)
        if matched is None or not matched.route:
            logger.debug(f"Ignoring unrecognized notification action '{action}'")
            return None

        await self.navigator.open_window(matched.route)
        return matched.route
