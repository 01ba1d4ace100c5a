"""Connectivity tracking derived from transport outcomes."""

import logging
from collections.abc import Awaitable
from collections.abc import Callable
from datetime import UTC
from datetime import datetime

logger = logging.getLogger(__name__)

TransitionCallback = Callable[[bool], Awaitable[None]]


class ConnectivityMonitor:
    """Tracks online/offline state from network outcomes.

    Starts optimistic (online). A failed fetch marks the engine offline; the
    next successful fetch marks it online again and fires the transition
    callback with ``True``, which the engine uses as its
    connectivity-restored signal.
    """

    def __init__(self, on_transition: TransitionCallback | None = None) -> None:
        self.online = True
        self.changed_at = datetime.now(UTC)
        self.last_failure_reason: str | None = None
        self._on_transition = on_transition

    async def record_success(self) -> None:
        if self.online:
            return
        self.online = True
        self.changed_at = datetime.now(UTC)
        logger.info("Connectivity restored")
        if self._on_transition is not None:
            await self._on_transition(True)

    async def record_failure(self, reason: str) -> None:
        self.last_failure_reason = reason
        if not self.online:
            return
        self.online = False
        self.changed_at = datetime.now(UTC)
        logger.warning(f"Connectivity lost: {reason}")
        if self._on_transition is not None:
            await self._on_transition(False)
