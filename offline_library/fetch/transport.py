"""Network transport for the offline engine.

The only component that talks to the network. Every response is read in
full and returned as an immutable ResponseSnapshot, so the caller and the
cache writer each get an independent readable copy. Failures to obtain any
response at all are raised as TransportUnreachableError. A response that
cannot be used (redirect loop, undecodable body) becomes a synthesized 502,
which callers treat like any server error. Responses with error statuses
are returned normally (classification is the caller's job).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from ..errors import TransportUnreachableError
from ..models.cache import ResponseSnapshot
from ..models.requests import InterceptedRequest
from . import responses

if TYPE_CHECKING:
    from ..sync.connectivity import ConnectivityMonitor

logger = logging.getLogger(__name__)

# Request headers that must not be forwarded verbatim
_SKIP_REQUEST_HEADERS = frozenset({"host", "content-length", "connection", "transfer-encoding", "accept-encoding"})


class NetworkTransport:
    """Async HTTP transport producing buffered snapshots.

    Example:
        >>> transport = NetworkTransport()
        >>> async def run():
        ...     snapshot = await transport.fetch(InterceptedRequest(url="http://localhost:3000/"))
        ...     await transport.aclose()
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        monitor: ConnectivityMonitor | None = None,
    ) -> None:
        """Initialize transport.

        Args:
            client: Optional preconfigured client (tests inject mock transports)
            timeout: Per-request timeout in seconds when no client is given
            monitor: Optional connectivity monitor fed with every outcome
        """
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        self.monitor = monitor

    async def fetch(self, request: InterceptedRequest, timeout: float | None = None) -> ResponseSnapshot:
        """Send a request and buffer the full response.

        Args:
            request: Request to send
            timeout: Optional timeout overriding the client default

        Returns:
            Snapshot of the response (any status)

        Raises:
            TransportUnreachableError: If no response could be obtained
        """
        headers = {name: value for name, value in request.headers.items() if name not in _SKIP_REQUEST_HEADERS}
        kwargs = {}
        if timeout is not None:
            kwargs["timeout"] = timeout

        try:
            response = await self.client.request(
                request.method,
                request.url,
                headers=headers,
                content=request.body or None,
                **kwargs,
            )
        except httpx.TransportError as e:
            reason = type(e).__name__
            logger.warning(f"Network unreachable for {request.method} {request.url}: {reason}")
            if self.monitor is not None:
                await self.monitor.record_failure(reason)
            raise TransportUnreachableError(request.url, reason) from e
        except httpx.RequestError as e:
            # A server answered, but with a redirect loop or an undecodable body
            reason = type(e).__name__
            logger.warning(f"Unusable response for {request.method} {request.url}: {reason}")
            if self.monitor is not None:
                await self.monitor.record_success()
            return responses.bad_response(reason)

        if self.monitor is not None:
            await self.monitor.record_success()

        logger.debug(f"{request.method} {request.url} -> {response.status_code}")
        return ResponseSnapshot(
            status=response.status_code,
            headers=dict(response.headers),
            body=response.content,
            url=str(response.url),
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self.client.aclose()
