"""Caching strategies for intercepted requests.

- cache_first: navigation/static. Dynamic partition, then static; on a miss
  fetch and store into dynamic. Offline misses get the offline page
  (navigations) or a generic 503.
- network_first: API data. Network, writing 2xx through to dynamic; when
  unreachable, the last stored snapshot or a structured unavailable response.
- network_or_queue: writes. Network; when unreachable, queue for replay and
  answer 202.
- passthrough: network only, no caching.

Only 2xx GET responses are ever written to the cache. Server error statuses
are handed back untouched: they are never cached, queued or replaced by
stale data.
"""

from __future__ import annotations

import logging

from ..cache.fingerprint import fingerprint
from ..cache.fingerprint import fingerprint_for
from ..cache.fingerprint import resolve_url
from ..cache.store import CacheStore
from ..errors import TransportUnreachableError
from ..models.cache import ResponseSnapshot
from ..models.requests import FetchResult
from ..models.requests import InterceptedRequest
from ..models.requests import ResponseSource
from ..models.requests import RouteClass
from ..queue.manager import WriteQueue
from . import responses
from .transport import NetworkTransport

logger = logging.getLogger(__name__)

# Headers replayed with a queued write. Credentials are never written to
# disk; replays authenticate through the transport client.
_REPLAY_HEADERS = ("content-type", "accept", "x-request-id")


class FetchStrategyEngine:
    """Implements the fetch strategies over a cache store and a transport."""

    def __init__(
        self,
        store: CacheStore,
        transport: NetworkTransport,
        queue: WriteQueue,
        static_partition: str,
        dynamic_partition: str,
        app_origin: str,
        offline_route: str = "/offline",
        offline_status_code: int = 503,
    ) -> None:
        """Initialize strategy engine.

        Args:
            store: Cache store
            transport: Network transport
            queue: Durable write queue for failed writes
            static_partition: Partition populated at install
            dynamic_partition: Partition populated at runtime
            app_origin: Application origin (resolves the offline route)
            offline_route: Route of the cached offline page
            offline_status_code: Reserved status for unavailable API data
        """
        self.store = store
        self.transport = transport
        self.queue = queue
        self.static_partition = static_partition
        self.dynamic_partition = dynamic_partition
        self.app_origin = app_origin
        self.offline_route = offline_route
        self.offline_status_code = offline_status_code

    def use_partitions(self, static_partition: str, dynamic_partition: str) -> None:
        """Switch the partitions served from (on activation)."""
        self.static_partition = static_partition
        self.dynamic_partition = dynamic_partition
        logger.info(f"Serving from partitions {static_partition}, {dynamic_partition}")

    async def _store(self, fp: str, snapshot: ResponseSnapshot) -> None:
        # Cache writes are best-effort: a full disk must not fail the response
        try:
            await self.store.put(self.dynamic_partition, fp, snapshot)
        except OSError as e:
            logger.warning(f"Failed to cache {fp}: {e}")

    async def cache_first(self, request: InterceptedRequest) -> FetchResult:
        """Cache-first-with-refresh for navigation and static requests.

        Args:
            request: GET request

        Returns:
            Cached, network or offline-fallback result
        """
        fp = fingerprint(request)

        for partition in (self.dynamic_partition, self.static_partition):
            cached = await self.store.get(partition, fp)
            if cached is not None:
                logger.debug(f"Serving from cache ({partition}): {request.url}")
                return FetchResult(snapshot=cached, source=ResponseSource.CACHE, route=RouteClass.NAVIGATION)

        try:
            snapshot = await self.transport.fetch(request)
        except TransportUnreachableError:
            if request.is_navigation:
                return FetchResult(
                    snapshot=await self.offline_page(),
                    source=ResponseSource.OFFLINE,
                    route=RouteClass.NAVIGATION,
                )
            return FetchResult(
                snapshot=responses.network_unavailable(),
                source=ResponseSource.OFFLINE,
                route=RouteClass.NAVIGATION,
            )

        if snapshot.ok:
            await self._store(fp, snapshot)
        return FetchResult(snapshot=snapshot, source=ResponseSource.NETWORK, route=RouteClass.NAVIGATION)

    async def network_first(self, request: InterceptedRequest) -> FetchResult:
        """Network-first-with-fallback for API data.

        Args:
            request: GET request for a data endpoint

        Returns:
            Live, stale-but-available or unavailable result
        """
        fp = fingerprint(request)

        try:
            snapshot = await self.transport.fetch(request)
        except TransportUnreachableError:
            cached = await self.store.get(self.dynamic_partition, fp)
            if cached is not None:
                logger.info(f"Network unreachable, serving stale data for {request.url}")
                return FetchResult(snapshot=cached, source=ResponseSource.CACHE, route=RouteClass.API_DATA)
            logger.info(f"Network unreachable and nothing cached for {request.url}")
            return FetchResult(
                snapshot=responses.data_unavailable(self.offline_status_code),
                source=ResponseSource.OFFLINE,
                route=RouteClass.API_DATA,
            )

        if snapshot.ok:
            await self._store(fp, snapshot)
        return FetchResult(snapshot=snapshot, source=ResponseSource.NETWORK, route=RouteClass.API_DATA)

    async def network_or_queue(self, request: InterceptedRequest) -> FetchResult:
        """Send a write; queue it for replay if the network is unreachable.

        Args:
            request: Mutating request

        Returns:
            Network result, or a 202 result carrying the queued entry id
        """
        try:
            snapshot = await self.transport.fetch(request)
        except TransportUnreachableError:
            headers = {name: request.headers[name] for name in _REPLAY_HEADERS if name in request.headers}
            entry = await self.queue.enqueue(
                endpoint=request.url,
                payload=request.body,
                method=request.method,
                headers=headers,
            )
            return FetchResult(
                snapshot=responses.write_queued(entry),
                source=ResponseSource.QUEUED,
                route=RouteClass.WRITE,
                queued_id=entry.id,
            )

        return FetchResult(snapshot=snapshot, source=ResponseSource.NETWORK, route=RouteClass.WRITE)

    async def passthrough(self, request: InterceptedRequest) -> FetchResult:
        """Send a request straight to the network.

        Raises:
            TransportUnreachableError: If the network is unreachable
        """
        snapshot = await self.transport.fetch(request)
        return FetchResult(snapshot=snapshot, source=ResponseSource.NETWORK, route=RouteClass.PASSTHROUGH)

    async def offline_page(self) -> ResponseSnapshot:
        """Designated offline page, or a built-in one if it was never cached."""
        fp = fingerprint_for(resolve_url(self.app_origin, self.offline_route))
        for partition in (self.dynamic_partition, self.static_partition):
            cached = await self.store.get(partition, fp)
            if cached is not None:
                return cached
        logger.warning(f"Offline page {self.offline_route} is not cached, using built-in page")
        return responses.builtin_offline_page()
