"""Request classification and dispatch."""

import logging

from ..fetch.strategies import FetchStrategyEngine
from ..models.requests import FetchResult
from ..models.requests import InterceptedRequest
from ..models.requests import RouteClass

logger = logging.getLogger(__name__)


class RequestRouter:
    """Classifies intercepted requests and hands them to a fetch strategy.

    Classification order:
    1. Cross-origin requests pass through untouched
    2. Same-origin POST, PUT, PATCH and DELETE requests are writes when their
       path is queueable; other non-GET methods (HEAD, OPTIONS) pass through
    3. GETs under a data prefix (or the GraphQL path) are API data
    4. Every other GET is a navigation/static request
    """

    def __init__(
        self,
        app_origin: str,
        strategies: FetchStrategyEngine,
        api_prefixes: list[str] | None = None,
        graphql_path: str | None = "/graphql",
        queue_prefixes: list[str] | None = None,
    ) -> None:
        """Initialize router.

        Args:
            app_origin: Origin treated as same-origin
            strategies: Strategy engine requests are dispatched to
            api_prefixes: Path prefixes of data endpoints (default: ["/api/"])
            graphql_path: GraphQL endpoint path (None disables)
            queue_prefixes: Path prefixes whose writes may be queued (default: ["/api/"])
        """
        self.app_origin = app_origin.rstrip("/").lower()
        self.strategies = strategies
        self.api_prefixes = list(api_prefixes) if api_prefixes is not None else ["/api/"]
        self.graphql_path = graphql_path
        self.queue_prefixes = list(queue_prefixes) if queue_prefixes is not None else ["/api/"]

    def classify(self, request: InterceptedRequest) -> RouteClass:
        """Classify a request.

        Args:
            request: Intercepted request

        Returns:
            Route class deciding the strategy
        """
        if request.origin != self.app_origin:
            return RouteClass.PASSTHROUGH

        path = request.path
        if not request.is_read:
            # HEAD, OPTIONS and other non-mutating methods are never queued
            if request.is_mutation and path.startswith(tuple(self.queue_prefixes)):
                return RouteClass.WRITE
            return RouteClass.PASSTHROUGH

        if path.startswith(tuple(self.api_prefixes)) or (self.graphql_path and path == self.graphql_path):
            return RouteClass.API_DATA
        return RouteClass.NAVIGATION

    async def dispatch(self, request: InterceptedRequest) -> FetchResult:
        """Classify a request and run the matching strategy.

        Args:
            request: Intercepted request

        Returns:
            Result of the chosen strategy

        Raises:
            TransportUnreachableError: For passthrough requests without network
        """
        route = self.classify(request)
        logger.debug(f"{request.method} {request.url} classified as {route.value}")

        if route == RouteClass.API_DATA:
            return await self.strategies.network_first(request)
        if route == RouteClass.NAVIGATION:
            return await self.strategies.cache_first(request)
        if route == RouteClass.WRITE:
            return await self.strategies.network_or_queue(request)
        return await self.strategies.passthrough(request)
