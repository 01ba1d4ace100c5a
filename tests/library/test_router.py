"""
Unit tests for request classification.

Tests same-origin/cross-origin handling, API data prefixes, the GraphQL
path and queueable write prefixes.
"""

from unittest.mock import AsyncMock
from unittest.mock import MagicMock

import pytest

from offline_library.models import InterceptedRequest
from offline_library.models import RouteClass
from offline_library.routing.router import RequestRouter

ORIGIN = "http://app.test"


@pytest.fixture
def strategies() -> MagicMock:
    strategies = MagicMock()
    for name in ("cache_first", "network_first", "network_or_queue", "passthrough"):
        setattr(strategies, name, AsyncMock(return_value=name))
    return strategies


@pytest.fixture
def router(strategies: MagicMock) -> RequestRouter:
    return RequestRouter(app_origin=ORIGIN, strategies=strategies)


@pytest.mark.unit
class TestClassify:
    """Test RouteClass assignment."""

    @pytest.mark.parametrize(
        ("method", "url", "expected"),
        [
            ("GET", f"{ORIGIN}/", RouteClass.NAVIGATION),
            ("GET", f"{ORIGIN}/dashboard", RouteClass.NAVIGATION),
            ("GET", f"{ORIGIN}/manifest.json", RouteClass.NAVIGATION),
            ("GET", f"{ORIGIN}/api/accounts", RouteClass.API_DATA),
            ("GET", f"{ORIGIN}/api/transactions?page=2", RouteClass.API_DATA),
            ("GET", f"{ORIGIN}/graphql", RouteClass.API_DATA),
            ("GET", f"{ORIGIN}/graphql/schema", RouteClass.NAVIGATION),
            ("POST", f"{ORIGIN}/api/transactions", RouteClass.WRITE),
            ("PUT", f"{ORIGIN}/api/accounts/1", RouteClass.WRITE),
            ("DELETE", f"{ORIGIN}/api/accounts/1", RouteClass.WRITE),
            ("PATCH", f"{ORIGIN}/api/accounts/1", RouteClass.WRITE),
            ("HEAD", f"{ORIGIN}/api/accounts", RouteClass.PASSTHROUGH),
            ("OPTIONS", f"{ORIGIN}/api/accounts", RouteClass.PASSTHROUGH),
            ("POST", f"{ORIGIN}/graphql", RouteClass.PASSTHROUGH),
            ("POST", f"{ORIGIN}/auth/login", RouteClass.PASSTHROUGH),
            ("GET", "https://cdn.test/app.js", RouteClass.PASSTHROUGH),
            ("POST", "https://other.test/api/x", RouteClass.PASSTHROUGH),
            ("GET", "http://app.test:8080/", RouteClass.PASSTHROUGH),
        ],
    )
    def test_classification(self, router: RequestRouter, method: str, url: str, expected: RouteClass) -> None:
        assert router.classify(InterceptedRequest(method=method, url=url)) == expected

    def test_origin_match_is_case_insensitive(self, router: RequestRouter) -> None:
        assert router.classify(InterceptedRequest(url="HTTP://APP.TEST/dashboard")) == RouteClass.NAVIGATION

    def test_custom_prefixes(self, strategies: MagicMock) -> None:
        router = RequestRouter(
            app_origin=ORIGIN,
            strategies=strategies,
            api_prefixes=["/data/"],
            graphql_path=None,
            queue_prefixes=["/data/", "/auth/"],
        )

        assert router.classify(InterceptedRequest(url=f"{ORIGIN}/data/x")) == RouteClass.API_DATA
        assert router.classify(InterceptedRequest(url=f"{ORIGIN}/api/x")) == RouteClass.NAVIGATION
        assert router.classify(InterceptedRequest(url=f"{ORIGIN}/graphql")) == RouteClass.NAVIGATION
        assert router.classify(InterceptedRequest(method="POST", url=f"{ORIGIN}/auth/login")) == RouteClass.WRITE


@pytest.mark.unit
class TestDispatch:
    """Test each route class reaches its strategy."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "url", "strategy"),
        [
            ("GET", f"{ORIGIN}/dashboard", "cache_first"),
            ("GET", f"{ORIGIN}/api/accounts", "network_first"),
            ("POST", f"{ORIGIN}/api/transactions", "network_or_queue"),
            ("GET", "https://cdn.test/app.js", "passthrough"),
            ("HEAD", f"{ORIGIN}/api/accounts", "passthrough"),
            ("OPTIONS", f"{ORIGIN}/api/accounts", "passthrough"),
        ],
    )
    async def test_dispatch(
        self, router: RequestRouter, strategies: MagicMock, method: str, url: str, strategy: str
    ) -> None:
        request = InterceptedRequest(method=method, url=url)

        assert await router.dispatch(request) == strategy
        getattr(strategies, strategy).assert_awaited_once_with(request)
