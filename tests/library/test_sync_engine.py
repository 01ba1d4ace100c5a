"""
Unit tests for the sync engine.

Tests FIFO replay, failure handling, server rejections, replay timeouts,
idempotent drains and coalescing of concurrent triggers.
"""

import asyncio
from typing import Any
from unittest.mock import patch

import httpx
import pytest
import respx

from offline_library.fetch.transport import NetworkTransport
from offline_library.models import InterceptedRequest
from offline_library.models import ResponseSnapshot
from offline_library.models import SyncState
from offline_library.queue.manager import WriteQueue
from offline_library.sync.engine import SyncEngine

ORIGIN = "http://app.test"


class RecordingEvents:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    async def __call__(self, event_type: str, data: dict[str, Any]) -> None:
        self.events.append((event_type, data))

    def of_type(self, event_type: str) -> list[dict[str, Any]]:
        return [data for kind, data in self.events if kind == event_type]


class GatedTransport:
    """Transport whose replies wait for a gate to open."""

    def __init__(self) -> None:
        self.gate = asyncio.Event()
        self.started = asyncio.Event()
        self.requests: list[InterceptedRequest] = []

    async def fetch(self, request: InterceptedRequest, timeout: float | None = None) -> ResponseSnapshot:
        self.requests.append(request)
        self.started.set()
        await self.gate.wait()
        return ResponseSnapshot(status=200)


class HangingTransport:
    async def fetch(self, request: InterceptedRequest, timeout: float | None = None) -> ResponseSnapshot:
        await asyncio.sleep(3600)
        raise AssertionError("unreachable")


@pytest.fixture
def events() -> RecordingEvents:
    return RecordingEvents()


@pytest.fixture
def engine(queue: WriteQueue, transport: NetworkTransport, events: RecordingEvents) -> SyncEngine:
    return SyncEngine(queue=queue, transport=transport, replay_timeout=5.0, on_event=events)


async def enqueue(queue: WriteQueue, name: str, method: str = "POST") -> str:
    entry = await queue.enqueue(f"{ORIGIN}/api/{name}", payload=name.encode(), method=method)
    return entry.id


@pytest.mark.unit
class TestDrain:
    """Test queue replay outcomes."""

    @pytest.mark.asyncio
    async def test_successful_replay_empties_queue(
        self, engine: SyncEngine, queue: WriteQueue, network: respx.MockRouter
    ) -> None:
        route = network.post("/api/t1").mock(return_value=httpx.Response(201))
        entry_id = await enqueue(queue, "t1")

        report = await engine.trigger("background-sync")

        assert report.succeeded == [entry_id]
        assert report.remaining == 0
        assert await queue.count() == 0
        assert route.calls.last.request.content == b"t1"
        assert engine.state == SyncState.IDLE

    @pytest.mark.asyncio
    async def test_fifo_with_failures(self, engine: SyncEngine, queue: WriteQueue, network: respx.MockRouter) -> None:
        """Test [A, B, C] where B fails leaves exactly [B] with one more attempt."""
        order: list[str] = []

        def reply(status: int):
            def _reply(request: httpx.Request) -> httpx.Response:
                order.append(request.url.path)
                return httpx.Response(status)

            return _reply

        network.post("/api/a").mock(side_effect=reply(200))
        network.post("/api/b").mock(side_effect=httpx.ConnectError)
        network.post("/api/c").mock(side_effect=reply(204))
        a, b, c = [await enqueue(queue, name) for name in ("a", "b", "c")]

        report = await engine.trigger("background-sync")

        assert order == ["/api/a", "/api/c"]
        assert report.succeeded == [a, c]
        assert report.failed == [b]
        pending = await queue.list_pending()
        assert [entry.id for entry in pending] == [b]
        assert pending[0].attempt_count == 1
        assert pending[0].last_error == "ConnectError"

    @pytest.mark.asyncio
    async def test_drain_is_idempotent(self, engine: SyncEngine, queue: WriteQueue, network: respx.MockRouter) -> None:
        """Test a second drain after a successful one replays nothing."""
        route = network.post("/api/once").mock(return_value=httpx.Response(200))
        await enqueue(queue, "once")

        await engine.trigger("background-sync")
        second = await engine.trigger("background-sync")

        assert route.call_count == 1
        assert second.attempted == 0
        assert second.succeeded == []

    @pytest.mark.asyncio
    async def test_server_rejection_kept_and_surfaced(
        self, engine: SyncEngine, queue: WriteQueue, events: RecordingEvents, network: respx.MockRouter
    ) -> None:
        network.put("/api/bad").mock(return_value=httpx.Response(422, json={"error": "invalid amount"}))
        entry_id = await enqueue(queue, "bad", method="PUT")

        report = await engine.trigger("background-sync")

        assert report.failed == [entry_id]
        assert [r.entry_id for r in report.rejected] == [entry_id]
        assert report.rejected[0].status == 422
        assert "invalid amount" in report.rejected[0].body

        entry = await queue.get(entry_id)
        assert entry.attempt_count == 1
        assert entry.last_status == 422

        [rejection] = events.of_type("sync:replay-rejected")
        assert rejection["entryId"] == entry_id
        assert rejection["status"] == 422

    @pytest.mark.asyncio
    async def test_replay_timeout_counts_as_failure(self, queue: WriteQueue) -> None:
        engine = SyncEngine(queue=queue, transport=HangingTransport(), replay_timeout=0.05)
        entry_id = await enqueue(queue, "slow")

        report = await engine.trigger("background-sync")

        assert report.failed == [entry_id]
        entry = await queue.get(entry_id)
        assert entry.attempt_count == 1
        assert "timed out" in entry.last_error
        assert engine.state == SyncState.IDLE

    @pytest.mark.asyncio
    async def test_completed_event(
        self, engine: SyncEngine, queue: WriteQueue, events: RecordingEvents, network: respx.MockRouter
    ) -> None:
        network.post("/api/x").mock(return_value=httpx.Response(200))
        await enqueue(queue, "x")

        await engine.trigger("periodic-sync")

        [completed] = events.of_type("sync:completed")
        assert completed["trigger"] == "periodic-sync"
        assert len(completed["succeeded"]) == 1

    @pytest.mark.asyncio
    async def test_failed_entry_stays_ahead_of_newer_writes(
        self, engine: SyncEngine, queue: WriteQueue, network: respx.MockRouter
    ) -> None:
        """Test an entry left by one drain is retried before writes queued after it."""
        order: list[str] = []

        def reply(status: int | None):
            def _reply(request: httpx.Request) -> httpx.Response:
                order.append(request.url.path)
                if status is None:
                    raise httpx.ConnectError("connection refused", request=request)
                return httpx.Response(status)

            return _reply

        network.post("/api/a").mock(side_effect=reply(200))
        network.post("/api/b").mock(side_effect=reply(None))
        network.post("/api/c").mock(side_effect=reply(200))
        network.post("/api/d").mock(side_effect=reply(201))
        _, b, _ = [await enqueue(queue, name) for name in ("a", "b", "c")]
        await engine.trigger("background-sync")
        d = await enqueue(queue, "d")
        order.clear()

        report = await engine.trigger("background-sync")

        assert order == ["/api/b", "/api/d"]
        assert report.succeeded == [d]
        assert report.failed == [b]
        [pending] = await queue.list_pending()
        assert pending.id == b
        assert pending.attempt_count == 2

    @pytest.mark.asyncio
    async def test_unusable_response_does_not_abort_drain(
        self, engine: SyncEngine, queue: WriteQueue, network: respx.MockRouter
    ) -> None:
        """Test a redirect loop on one entry is recorded and later entries still replay."""
        network.post("/api/a").mock(side_effect=httpx.TooManyRedirects)
        network.post("/api/b").mock(return_value=httpx.Response(201))
        a = await enqueue(queue, "a")
        b = await enqueue(queue, "b")

        report = await engine.trigger("background-sync")

        assert report.succeeded == [b]
        assert report.failed == [a]
        assert [rejection.status for rejection in report.rejected] == [502]
        [pending] = await queue.list_pending()
        assert pending.id == a
        assert pending.attempt_count == 1
        assert pending.last_status == 502

    @pytest.mark.asyncio
    async def test_unexpected_replay_error_recorded(self, queue: WriteQueue) -> None:
        class BrokenTransport:
            async def fetch(self, request, timeout=None):
                if request.url.endswith("/x"):
                    raise RuntimeError("bug")
                return ResponseSnapshot(status=200)

        engine = SyncEngine(queue=queue, transport=BrokenTransport())
        x = await enqueue(queue, "x")
        y = await enqueue(queue, "y")

        report = await engine.trigger("background-sync")

        assert report.failed == [x]
        assert report.succeeded == [y]
        assert engine.state == SyncState.IDLE
        entry = await queue.get(x)
        assert entry.last_error == "RuntimeError: bug"

    @pytest.mark.asyncio
    async def test_returns_to_idle_after_unexpected_error(self, engine: SyncEngine, queue: WriteQueue) -> None:
        await enqueue(queue, "x")

        with patch.object(queue, "list_pending", side_effect=OSError("disk unavailable")):
            with pytest.raises(OSError):
                await engine.trigger("background-sync")

        assert engine.state == SyncState.IDLE
        assert await queue.count() == 1


@pytest.mark.unit
class TestCoalescing:
    """Test concurrent triggers."""

    @pytest.mark.asyncio
    async def test_trigger_during_drain_is_coalesced(self, queue: WriteQueue) -> None:
        """Test a trigger mid-drain replays nothing and each entry is sent once."""
        transport = GatedTransport()
        engine = SyncEngine(queue=queue, transport=transport)
        await enqueue(queue, "a")
        await enqueue(queue, "b")

        first = asyncio.create_task(engine.trigger("background-sync"))
        await transport.started.wait()
        assert engine.state == SyncState.DRAINING

        second = await engine.trigger("connectivity-restored")
        transport.gate.set()
        report = await first

        assert second.coalesced is True
        assert second.attempted == 0
        assert len(report.succeeded) == 2
        assert len(transport.requests) == 2
        assert await queue.count() == 0
        assert engine.state == SyncState.IDLE
