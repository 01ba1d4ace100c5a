"""Offline engine: lifecycle, request handling and background signals.

Wires the cache store, precache manager, router, fetch strategies, write
queue, sync engine and notification dispatcher together, and drives the
install/activate lifecycle of one release version.

Lifecycle:
    new -> installing -> installed -> activating -> activated
    installing -> redundant (precache failed; the previous version keeps serving)

A version that installs while an older one is active waits (``installed``)
until it is told to skip waiting or the engine restarts. The lifecycle
record in state/lifecycle.json carries the active and waiting versions
across restarts.
"""

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import httpx

from . import events
from .cache.store import CacheStore
from .cache.store import dynamic_partition
from .cache.store import static_partition
from .config.settings import EngineSettings
from .errors import OfflineEngineError
from .errors import PrecacheError
from .events import EventCallback
from .fetch.strategies import FetchStrategyEngine
from .fetch.transport import NetworkTransport
from .lifecycle import LifecycleStore
from .models.lifecycle import DrainReport
from .models.lifecycle import EngineState
from .models.lifecycle import EngineStatus
from .models.lifecycle import LifecycleRecord
from .models.lifecycle import PrecacheReport
from .models.notifications import NotificationAction
from .models.notifications import NotificationRecord
from .models.requests import FetchResult
from .models.requests import InterceptedRequest
from .models.requests import ResponseSource
from .notifications.dispatcher import Navigator
from .notifications.dispatcher import NotificationDispatcher
from .notifications.dispatcher import NotificationSurface
from .precache.manager import PrecacheManager
from .queue.manager import WriteQueue
from .routing.router import RequestRouter
from .sync.connectivity import ConnectivityMonitor
from .sync.engine import SYNC_TAGS
from .sync.engine import SyncEngine

logger = logging.getLogger(__name__)

SKIP_WAITING = "SKIP_WAITING"

_ACTION_TITLES = {"explore": "View", "close": "Close"}

# Shown notifications kept for click handling; the oldest are forgotten first
MAX_SHOWN_NOTIFICATIONS = 100


def _notification_actions(settings: EngineSettings) -> list[NotificationAction]:
    actions = [
        NotificationAction(action=name, title=_ACTION_TITLES.get(name, name.title()), route=route)
        for name, route in settings.notification_action_routes.items()
    ]
    actions.extend(
        NotificationAction(action=name, title=_ACTION_TITLES.get(name, name.title()))
        for name in settings.notification_dismiss_actions
    )
    return actions


class OfflineEngine:
    """Facade over the offline components for one release version.

    Example:
        >>> engine = OfflineEngine(EngineSettings(version="v2"))
        >>> async def run():
        ...     await engine.start()
        ...     result = await engine.handle_fetch(InterceptedRequest(url="http://localhost:3000/"))
        ...     await engine.aclose()
    """

    def __init__(
        self,
        settings: EngineSettings,
        store: CacheStore | None = None,
        queue: WriteQueue | None = None,
        http_client: httpx.AsyncClient | None = None,
        surface: NotificationSurface | None = None,
        navigator: Navigator | None = None,
        on_event: EventCallback | None = None,
        state_dir: Path | None = None,
    ) -> None:
        """Initialize engine.

        Args:
            settings: Engine settings
            store: Cache store (default: under $OFFLINED_HOME/cache)
            queue: Write queue (default: under $OFFLINED_HOME/state)
            http_client: Optional preconfigured HTTP client
            surface: Notification surface (notifications disabled if None)
            navigator: Navigator for notification click-through
            on_event: Optional async callback receiving engine events
            state_dir: Directory for the lifecycle record
        """
        self.settings = settings
        self.version = settings.version
        self.on_event = on_event

        self.store = store or CacheStore(max_entries_per_partition=settings.max_entries_per_partition)
        self.queue = queue or WriteQueue(max_pending=settings.max_pending_writes)
        self.lifecycle = LifecycleStore(state_dir)

        self.monitor = ConnectivityMonitor(on_transition=self._on_connectivity_change)
        self.transport = NetworkTransport(
            client=http_client,
            timeout=settings.fetch_timeout_seconds,
            monitor=self.monitor,
        )

        self.precache = PrecacheManager(
            store=self.store,
            transport=self.transport,
            manifest=settings.precache_manifest,
            app_origin=settings.app_origin,
            version=self.version,
        )
        self.strategies = FetchStrategyEngine(
            store=self.store,
            transport=self.transport,
            queue=self.queue,
            static_partition=static_partition(self.version),
            dynamic_partition=dynamic_partition(self.version),
            app_origin=settings.app_origin,
            offline_route=settings.offline_route,
            offline_status_code=settings.offline_status_code,
        )
        self.router = RequestRouter(
            app_origin=settings.app_origin,
            strategies=self.strategies,
            api_prefixes=settings.api_prefixes,
            graphql_path=settings.graphql_path,
            queue_prefixes=settings.queue_prefixes,
        )
        self.sync = SyncEngine(
            queue=self.queue,
            transport=self.transport,
            replay_timeout=settings.replay_timeout_seconds,
            on_event=self._emit,
        )

        self.notifications: NotificationDispatcher | None = None
        if surface is not None and navigator is not None:
            self.notifications = NotificationDispatcher(
                surface=surface,
                navigator=navigator,
                title=settings.notification_title,
                icon=settings.notification_icon,
                badge=settings.notification_badge,
                vibrate=settings.notification_vibrate,
                actions=_notification_actions(settings),
                dismiss_actions=settings.notification_dismiss_actions,
                default_route=settings.notification_default_route,
            )
        self._shown: OrderedDict[str, NotificationRecord] = OrderedDict()

        self.state = EngineState.NEW
        self.record = LifecycleRecord()
        self._tasks: set[asyncio.Task] = set()

    # --- Events ---

    async def _emit(self, event_type: str, data: dict[str, Any]) -> None:
        if self.on_event is None:
            return
        try:
            await self.on_event(event_type, data)
        except Exception as e:
            logger.error(f"Event handler failed for {event_type}: {e}", exc_info=True)

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _on_connectivity_change(self, online: bool) -> None:
        if not online:
            await self._emit(events.CONNECTIVITY_LOST, {"reason": self.monitor.last_failure_reason})
            return
        await self._emit(events.CONNECTIVITY_RESTORED, {})
        self._spawn(self.sync.trigger("connectivity-restored"))

    # --- Lifecycle ---

    def _serve(self, version: str) -> None:
        self.strategies.use_partitions(static_partition(version), dynamic_partition(version))

    async def start(self) -> EngineState:
        """Bring this version up.

        Activates a waiting or already active version without reinstalling.
        Otherwise installs, then activates right away when nothing else is
        active (or skip-waiting is configured) and waits when an older
        version is still serving.

        Returns:
            Lifecycle state after start

        Raises:
            PrecacheError: If install failed; the previous version keeps serving
        """
        await self.store.sweep()
        self.record = await self.lifecycle.load()
        installed = await self.store.has_partition(static_partition(self.version))

        if self.record.waiting_version == self.version and installed:
            logger.info(f"Activating waiting version {self.version}")
            await self.activate()
            return self.state

        if self.record.active_version == self.version and installed:
            logger.info(f"Version {self.version} already active")
            self._serve(self.version)
            self.state = EngineState.ACTIVATED
            return self.state

        previous = self.record.active_version
        if previous is not None and previous != self.version:
            self._serve(previous)

        await self.install()

        if previous is None or previous == self.version or self.settings.skip_waiting_on_install:
            await self.activate()
        else:
            logger.info(f"Version {self.version} installed, waiting for {previous} to be released")
            await self._emit(events.LIFECYCLE_WAITING, {"version": self.version, "activeVersion": previous})
        return self.state

    async def install(self) -> PrecacheReport:
        """Precache this version's static partition.

        Returns:
            Precache report

        Raises:
            PrecacheError: If any manifest entry could not be cached
        """
        self.state = EngineState.INSTALLING
        await self._emit(events.LIFECYCLE_INSTALLING, {"version": self.version})

        try:
            report = await self.precache.install()
        except PrecacheError as e:
            self.state = EngineState.REDUNDANT
            logger.error(f"Install of {self.version} failed: {e}")
            await self._emit(events.LIFECYCLE_INSTALL_FAILED, {"version": self.version, "failures": e.failures})
            raise

        self.state = EngineState.INSTALLED
        self.record = await self.lifecycle.save(self.record.model_copy(update={"waiting_version": self.version}))
        await self._emit(events.LIFECYCLE_INSTALLED, report.model_dump(mode="json", by_alias=True))
        return report

    async def activate(self) -> list[str]:
        """Make this version the one serving and delete other versions' partitions.

        Returns:
            Names of deleted partitions

        Raises:
            OfflineEngineError: If this version has not been installed
        """
        if not await self.store.has_partition(static_partition(self.version)):
            raise OfflineEngineError(f"Version {self.version} is not installed")

        self.state = EngineState.ACTIVATING
        deleted = await self.precache.activate()
        self._serve(self.version)
        self.record = await self.lifecycle.save(
            self.record.model_copy(update={"active_version": self.version, "waiting_version": None})
        )
        self.state = EngineState.ACTIVATED

        logger.info(f"Version {self.version} activated")
        await self._emit(events.LIFECYCLE_ACTIVATED, {"version": self.version, "deletedPartitions": deleted})
        return deleted

    async def handle_message(self, message: dict[str, Any]) -> EngineState:
        """Handle a control message from the host.

        Only ``{"type": "SKIP_WAITING"}`` is understood: it activates a
        waiting version immediately.

        Args:
            message: Control message

        Returns:
            Lifecycle state after handling
        """
        message_type = message.get("type")
        if message_type != SKIP_WAITING:
            logger.debug(f"Ignoring control message {message_type!r}")
            return self.state

        if self.state == EngineState.INSTALLED or self.record.waiting_version == self.version:
            await self.activate()
        else:
            logger.debug(f"SKIP_WAITING ignored in state {self.state.value}")
        return self.state

    # --- Requests ---

    async def handle_fetch(self, request: InterceptedRequest) -> FetchResult:
        """Serve an intercepted request.

        Args:
            request: Request issued by the host

        Returns:
            Result of the routed strategy

        Raises:
            TransportUnreachableError: For passthrough requests without network
        """
        result = await self.router.dispatch(request)
        if result.source == ResponseSource.QUEUED:
            await self._emit(
                events.WRITE_QUEUED,
                {"id": result.queued_id, "method": request.method, "endpoint": request.url},
            )
        return result

    # --- Sync ---

    async def handle_sync(self, tag: str) -> DrainReport | None:
        """Handle a background sync signal.

        Args:
            tag: Sync tag (background-sync, periodic-sync, connectivity-restored)

        Returns:
            Drain report, or None for an unknown tag
        """
        if tag not in SYNC_TAGS:
            logger.debug(f"Ignoring sync tag {tag!r}")
            return None
        return await self.sync.trigger(tag)

    async def connectivity_restored(self) -> DrainReport:
        """Host reports the network is back: mark online and drain."""
        await self.monitor.record_success()
        return await self.sync.trigger("connectivity-restored")

    # --- Notifications ---

    async def handle_push(self, payload: bytes | str | dict[str, Any] | None) -> NotificationRecord | None:
        """Show a notification for a push payload.

        Returns:
            Shown record, or None if the payload was empty or notifications
            are not configured
        """
        if self.notifications is None:
            logger.warning("Push received but no notification surface is configured")
            return None
        record = await self.notifications.handle_push(payload)
        if record is not None:
            self._shown[record.id] = record
            while len(self._shown) > MAX_SHOWN_NOTIFICATIONS:
                expired, _ = self._shown.popitem(last=False)
                logger.debug(f"Forgetting shown notification {expired}")
        return record

    async def handle_notification_click(self, notification_id: str, action: str | None = None) -> str | None:
        """Handle a click on a shown notification.

        Args:
            notification_id: Id of the shown notification
            action: Clicked action, or None for a body click

        Returns:
            Route navigated to, or None

        Raises:
            KeyError: If no such notification is being shown
        """
        if self.notifications is None:
            raise KeyError(notification_id)
        record = self._shown.pop(notification_id)
        return await self.notifications.handle_interaction(record, action)

    # --- Introspection ---

    async def status(self) -> EngineStatus:
        return EngineStatus(
            version=self.version,
            state=self.state,
            active_version=self.record.active_version,
            waiting_version=self.record.waiting_version,
            online=self.monitor.online,
            sync_state=self.sync.state,
            pending_writes=await self.queue.count(),
            partitions=sorted(await self.store.list_partitions()),
        )

    async def aclose(self) -> None:
        """Cancel background drains and close the transport."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.transport.aclose()
