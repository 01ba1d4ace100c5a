"""Control API for the offline engine.

Endpoints under /_offline let the host application drive the engine:
lifecycle messages, sync signals, queue inspection and cancellation, push
delivery and notification clicks.
"""

import logging
from typing import Annotated

from fastapi import APIRouter
from fastapi import Depends
from fastapi import HTTPException

from offline_library.engine import OfflineEngine
from offline_library.models import DrainReport
from offline_library.models import EngineStatus

from .. import __version__
from ..dependencies import get_engine
from ..models import CancelResponse
from ..models import ConnectivityResponse
from ..models import ControlMessageRequest
from ..models import HealthResponse
from ..models import MessageResponse
from ..models import NotificationClickRequest
from ..models import NotificationClickResponse
from ..models import PartitionListResponse
from ..models import PushRequest
from ..models import PushResponse
from ..models import QueueListResponse
from ..models import SyncRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/_offline", tags=["control"])

EngineDep = Annotated[OfflineEngine, Depends(get_engine)]


@router.get("/health", response_model=HealthResponse)
async def health(engine: EngineDep) -> HealthResponse:
    return HealthResponse(version=engine.version, daemon_version=__version__)


@router.get("/status", response_model=EngineStatus)
async def status(engine: EngineDep) -> EngineStatus:
    """Lifecycle, connectivity, sync and queue status."""
    try:
        return await engine.status()
    except Exception as exc:
        logger.error(f"Failed to read engine status: {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.post("/messages", response_model=MessageResponse)
async def post_message(message: ControlMessageRequest, engine: EngineDep) -> MessageResponse:
    """Deliver a control message.

    Example:
        ```json
        {"type": "SKIP_WAITING"}
        ```
    """
    try:
        state = await engine.handle_message({"type": message.type})
        return MessageResponse(state=state)
    except Exception as exc:
        logger.error(f"Failed to handle message {message.type}: {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.post("/sync", response_model=DrainReport)
async def trigger_sync(engine: EngineDep, sync: SyncRequest | None = None) -> DrainReport:
    """Deliver a background sync signal and wait for the drain.

    Raises:
        HTTPException:
            - 400 for unknown sync tags
            - 500 for other errors
    """
    tag = sync.tag if sync else "background-sync"
    try:
        report = await engine.handle_sync(tag)
    except Exception as exc:
        logger.error(f"Sync ({tag}) failed: {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc

    if report is None:
        raise HTTPException(status_code=400, detail=f"Unknown sync tag: {tag}")
    return report


@router.get("/connectivity", response_model=ConnectivityResponse)
async def get_connectivity(engine: EngineDep) -> ConnectivityResponse:
    return ConnectivityResponse(online=engine.monitor.online, changed_at=engine.monitor.changed_at)


@router.post("/connectivity", response_model=DrainReport)
async def connectivity_restored(engine: EngineDep) -> DrainReport:
    """Host reports the network is back; marks the engine online and drains."""
    try:
        return await engine.connectivity_restored()
    except Exception as exc:
        logger.error(f"Failed to handle connectivity restore: {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc


@router.get("/queue", response_model=QueueListResponse)
async def list_queue(engine: EngineDep) -> QueueListResponse:
    """Pending writes in replay order."""
    entries = await engine.queue.list_pending()
    return QueueListResponse(entries=entries, total=len(entries))


@router.delete("/queue/{entry_id}", response_model=CancelResponse)
async def cancel_queued_write(entry_id: str, engine: EngineDep) -> CancelResponse:
    """Cancel a pending write so it is never replayed.

    Raises:
        HTTPException:
            - 404 if no such entry is pending
    """
    if not await engine.queue.cancel(entry_id):
        raise HTTPException(status_code=404, detail=f"Queued write not found: {entry_id}")
    return CancelResponse(id=entry_id)


@router.get("/partitions", response_model=PartitionListResponse)
async def list_partitions(engine: EngineDep) -> PartitionListResponse:
    descriptors = []
    for name in sorted(await engine.store.list_partitions()):
        descriptor = await engine.store.describe(name)
        if descriptor is not None:
            descriptors.append(descriptor)
    return PartitionListResponse(partitions=descriptors)


@router.post("/push", response_model=PushResponse)
async def push(message: PushRequest, engine: EngineDep) -> PushResponse:
    """Deliver a push payload; shows a notification unless it is empty."""
    try:
        record = await engine.handle_push(message.payload)
    except Exception as exc:
        logger.error(f"Failed to handle push: {exc}")
        raise HTTPException(status_code=500, detail="Internal server error") from exc
    return PushResponse(shown=record is not None, notification=record)


@router.post("/notifications/click", response_model=NotificationClickResponse)
async def notification_click(click: NotificationClickRequest, engine: EngineDep) -> NotificationClickResponse:
    """Report a click on a shown notification.

    Raises:
        HTTPException:
            - 404 if the notification is not being shown
    """
    try:
        route = await engine.handle_notification_click(click.notification_id, click.action)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Notification not found: {click.notification_id}") from exc
    return NotificationClickResponse(route=route)
