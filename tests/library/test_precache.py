"""
Unit tests for install-time precaching and activation cleanup.

Tests all-or-nothing installs and removal of other versions' partitions.
"""

from unittest.mock import patch

import httpx
import pytest
import respx

from offline_library.cache.fingerprint import fingerprint_for
from offline_library.cache.store import CacheStore
from offline_library.errors import PrecacheError
from offline_library.fetch.transport import NetworkTransport
from offline_library.models import ResponseSnapshot
from offline_library.precache.manager import PrecacheManager

ORIGIN = "http://app.test"
MANIFEST = ["/", "/dashboard", "/offline"]


def manager(store: CacheStore, transport: NetworkTransport, version: str = "v1") -> PrecacheManager:
    return PrecacheManager(store=store, transport=transport, manifest=MANIFEST, app_origin=ORIGIN, version=version)


@pytest.mark.unit
class TestInstall:
    """Test PrecacheManager.install."""

    @pytest.mark.asyncio
    async def test_install_caches_every_entry(
        self, store: CacheStore, transport: NetworkTransport, serve_manifest
    ) -> None:
        serve_manifest("v1")

        report = await manager(store, transport).install()

        assert report.partition == "static-v1"
        assert report.entries == [f"{ORIGIN}/", f"{ORIGIN}/dashboard", f"{ORIGIN}/offline"]
        assert await store.list_partitions() == {"static-v1"}
        for path in MANIFEST:
            cached = await store.get("static-v1", fingerprint_for(f"{ORIGIN}{path}"))
            assert cached is not None
            assert cached.ok

    @pytest.mark.asyncio
    async def test_one_error_status_fails_whole_install(
        self, store: CacheStore, transport: NetworkTransport, network: respx.MockRouter
    ) -> None:
        """Test a single non-2xx manifest entry leaves no partition behind."""
        network.get("/").mock(return_value=httpx.Response(200, text="home"))
        network.get("/dashboard").mock(return_value=httpx.Response(500, text="boom"))
        network.get("/offline").mock(return_value=httpx.Response(200, text="offline"))

        with pytest.raises(PrecacheError) as exc_info:
            await manager(store, transport).install()

        assert exc_info.value.version == "v1"
        assert list(exc_info.value.failures) == [f"{ORIGIN}/dashboard"]
        assert "500" in exc_info.value.failures[f"{ORIGIN}/dashboard"]
        assert await store.list_partitions() == set()
        assert list(store.partitions_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_unreachable_entry_fails_install(
        self, store: CacheStore, transport: NetworkTransport, network: respx.MockRouter
    ) -> None:
        network.get("/").mock(return_value=httpx.Response(200, text="home"))
        network.get("/dashboard").mock(side_effect=httpx.ConnectTimeout)
        network.get("/offline").mock(side_effect=httpx.ConnectError)

        with pytest.raises(PrecacheError) as exc_info:
            await manager(store, transport).install()

        assert set(exc_info.value.failures) == {f"{ORIGIN}/dashboard", f"{ORIGIN}/offline"}
        assert await store.list_partitions() == set()

    @pytest.mark.asyncio
    async def test_failed_write_discards_staging(
        self, store: CacheStore, transport: NetworkTransport, serve_manifest
    ) -> None:
        serve_manifest("v1")

        with patch.object(store, "publish_partition", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                await manager(store, transport).install()

        assert list(store.partitions_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_failed_install_keeps_previous_version(
        self, store: CacheStore, transport: NetworkTransport, network: respx.MockRouter
    ) -> None:
        fp = fingerprint_for(f"{ORIGIN}/")
        await store.put("static-v1", fp, ResponseSnapshot.from_text(200, "v1 home"))
        network.get("/").mock(return_value=httpx.Response(503))
        network.get("/dashboard").mock(return_value=httpx.Response(200))
        network.get("/offline").mock(return_value=httpx.Response(200))

        with pytest.raises(PrecacheError):
            await manager(store, transport, version="v2").install()

        assert await store.list_partitions() == {"static-v1"}
        assert (await store.get("static-v1", fp)).text() == "v1 home"


@pytest.mark.unit
class TestActivate:
    """Test PrecacheManager.activate."""

    @pytest.mark.asyncio
    async def test_activate_removes_other_versions(self, store: CacheStore, transport: NetworkTransport) -> None:
        """Test only partitions tagged with the current version remain."""
        snapshot = ResponseSnapshot.from_text(200, "x")
        for name in ("static-v1", "dynamic-v1", "static-v2", "dynamic-v2", "static-v0"):
            await store.put(name, fingerprint_for(f"{ORIGIN}/"), snapshot)

        deleted = await manager(store, transport, version="v2").activate()

        assert sorted(deleted) == ["dynamic-v1", "static-v0", "static-v1"]
        assert await store.list_partitions() == {"static-v2", "dynamic-v2"}

    @pytest.mark.asyncio
    async def test_activate_skips_failed_deletions(self, store: CacheStore, transport: NetworkTransport) -> None:
        snapshot = ResponseSnapshot.from_text(200, "x")
        for name in ("static-v1", "dynamic-v1", "static-v2"):
            await store.put(name, fingerprint_for(f"{ORIGIN}/"), snapshot)

        original = store.delete_partition

        async def flaky_delete(name: str) -> bool:
            if name == "static-v1":
                raise OSError("busy")
            return await original(name)

        with patch.object(store, "delete_partition", side_effect=flaky_delete):
            deleted = await manager(store, transport, version="v2").activate()

        assert deleted == ["dynamic-v1"]
        assert await store.list_partitions() == {"static-v1", "static-v2"}
