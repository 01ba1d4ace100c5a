"""
Shared pytest fixtures for the offlined test suite.

Provides fixtures for:
- Isolated storage (OFFLINED_HOME pointed at a temp directory)
- Cache store, write queue and transport over that storage
- Engine settings for a small test application
"""

from collections.abc import Callable
from collections.abc import Generator
from pathlib import Path

import httpx
import pytest
import respx

from offline_library.cache.store import CacheStore
from offline_library.config import EngineSettings
from offline_library.fetch.transport import NetworkTransport
from offline_library.queue.manager import WriteQueue
from offline_library.sync.connectivity import ConnectivityMonitor


ORIGIN = "http://app.test"
MANIFEST = ["/", "/dashboard", "/offline"]


@pytest.fixture
def mock_storage_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point OFFLINED_HOME at a temp directory.

    Ensures tests use isolated storage and never touch a real .offlined
    directory.

    Example:
        >>> def test_with_isolated_storage(mock_storage_env):
        ...     from offline_library.storage.paths import get_home_dir
        ...     assert get_home_dir() == mock_storage_env
    """
    for var in ("OFFLINED_CONFIG_DIR", "OFFLINED_STATE_DIR", "OFFLINED_CACHE_DIR", "OFFLINED_LOG_DIR"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("OFFLINED_HOME", str(tmp_path))
    return tmp_path


@pytest.fixture
def settings(mock_storage_env: Path) -> EngineSettings:
    """Settings for a small test application at ORIGIN."""
    return EngineSettings(
        version="v1",
        app_origin=ORIGIN,
        precache_manifest=list(MANIFEST),
        sync_interval_seconds=None,
        cors_origins=[ORIGIN],
    )


@pytest.fixture
def store(mock_storage_env: Path) -> CacheStore:
    return CacheStore(partitions_dir=mock_storage_env / "cache" / "partitions")


@pytest.fixture
def queue(mock_storage_env: Path) -> WriteQueue:
    return WriteQueue(storage_dir=mock_storage_env / "state" / "queue")


@pytest.fixture
def monitor() -> ConnectivityMonitor:
    return ConnectivityMonitor()


@pytest.fixture
def transport(monitor: ConnectivityMonitor) -> NetworkTransport:
    """Transport over a real httpx client; tests intercept it with respx."""
    return NetworkTransport(client=httpx.AsyncClient(), monitor=monitor)


@pytest.fixture
def network() -> Generator[respx.MockRouter, None, None]:
    """respx router for ORIGIN; every request must be mocked."""
    with respx.mock(base_url=ORIGIN, assert_all_called=False) as router:
        yield router


@pytest.fixture
def serve_manifest(network: respx.MockRouter) -> Callable[[str], None]:
    """Mock every manifest route with a 2xx page tagged with a version.

    Example:
        >>> def test_install(serve_manifest):
        ...     serve_manifest("v2")
    """

    def _serve(version: str = "v1") -> None:
        for path in MANIFEST:
            network.get(path, name=f"manifest:{path}").mock(
                return_value=httpx.Response(200, html=f"<h1>{path} {version}</h1>"),
            )

    return _serve


@pytest.fixture
def go_offline(network: respx.MockRouter) -> Callable[[], None]:
    """Make every request to ORIGIN fail to connect."""

    def _offline() -> None:
        network.routes.clear()
        network.route().mock(side_effect=httpx.ConnectError)

    return _offline


@pytest.fixture
def go_online(network: respx.MockRouter) -> Callable[[], None]:
    """Drop the offline catch-all so routes added afterwards answer again."""

    def _online() -> None:
        network.routes.clear()

    return _online
