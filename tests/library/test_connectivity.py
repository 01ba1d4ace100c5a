"""Tests for connectivity tracking."""

import pytest

from offline_library.sync.connectivity import ConnectivityMonitor


@pytest.mark.asyncio
async def test_transitions_fire_once() -> None:
    transitions: list[bool] = []

    async def record(online: bool) -> None:
        transitions.append(online)

    monitor = ConnectivityMonitor(on_transition=record)

    await monitor.record_success()
    await monitor.record_failure("ConnectError")
    await monitor.record_failure("ConnectTimeout")
    await monitor.record_success()
    await monitor.record_success()

    assert transitions == [False, True]
    assert monitor.online
    assert monitor.last_failure_reason == "ConnectTimeout"


@pytest.mark.asyncio
async def test_without_callback() -> None:
    monitor = ConnectivityMonitor()

    await monitor.record_failure("ReadTimeout")

    assert not monitor.online
