"""Tests for push notification handling."""

import json

import pytest

from offline_library.models import NotificationAction
from offline_library.models import NotificationRecord
from offline_library.notifications.dispatcher import NotificationDispatcher


class FakeSurface:
    def __init__(self) -> None:
        self.shown: list[NotificationRecord] = []
        self.closed: list[str] = []

    async def show(self, record: NotificationRecord) -> None:
        self.shown.append(record)

    async def close(self, record: NotificationRecord) -> None:
        self.closed.append(record.id)


class FakeNavigator:
    def __init__(self) -> None:
        self.opened: list[str] = []
        self.focused: list[str] = []

    async def open_window(self, route: str) -> None:
        self.opened.append(route)

    async def focus_or_open(self, route: str) -> None:
        self.focused.append(route)


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def navigator() -> FakeNavigator:
    return FakeNavigator()


@pytest.fixture
def dispatcher(surface: FakeSurface, navigator: FakeNavigator) -> NotificationDispatcher:
    return NotificationDispatcher(surface=surface, navigator=navigator)


@pytest.mark.asyncio
async def test_text_payload_uses_defaults(dispatcher: NotificationDispatcher, surface: FakeSurface) -> None:
    """Test a plain text push becomes the body under the default title."""
    record = await dispatcher.handle_push(b"Budget limit reached")

    assert surface.shown == [record]
    assert record.title == "WAIS Notification"
    assert record.body == "Budget limit reached"
    assert record.icon == "/icon-192x192.png"
    assert record.badge == "/icon-72x72.png"
    assert record.vibrate == [100, 50, 100]
    assert [(a.action, a.title, a.route) for a in record.actions] == [
        ("explore", "View", "/dashboard"),
        ("close", "Close", None),
    ]
    assert record.data["primaryKey"] == 1
    assert "dateOfArrival" in record.data


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [None, b"", "", "   "])
async def test_empty_payload_is_noop(dispatcher: NotificationDispatcher, surface: FakeSurface, payload) -> None:
    assert await dispatcher.handle_push(payload) is None
    assert surface.shown == []


@pytest.mark.asyncio
async def test_json_payload_overrides(dispatcher: NotificationDispatcher) -> None:
    payload = json.dumps(
        {
            "title": "Payment due",
            "body": "Card ending 1234",
            "actions": [{"action": "pay", "title": "Pay now", "route": "/payments"}],
            "data": {"accountId": 42},
        }
    )

    record = await dispatcher.handle_push(payload)

    assert record.title == "Payment due"
    assert record.body == "Card ending 1234"
    assert [a.action for a in record.actions] == ["pay"]
    assert record.data["accountId"] == 42


@pytest.mark.asyncio
async def test_json_action_inherits_default_route(dispatcher: NotificationDispatcher) -> None:
    record = await dispatcher.handle_push({"body": "x", "actions": [{"action": "explore", "title": "Open"}]})

    assert record.actions[0].route == "/dashboard"


@pytest.mark.asyncio
async def test_non_object_json_is_text(dispatcher: NotificationDispatcher) -> None:
    record = await dispatcher.handle_push("[1, 2]")

    assert record.body == "[1, 2]"
    assert record.title == "WAIS Notification"


@pytest.mark.asyncio
async def test_explore_opens_dashboard(
    dispatcher: NotificationDispatcher, surface: FakeSurface, navigator: FakeNavigator
) -> None:
    record = await dispatcher.handle_push("hello")

    route = await dispatcher.handle_interaction(record, "explore")

    assert route == "/dashboard"
    assert surface.closed == [record.id]
    assert navigator.opened == ["/dashboard"]


@pytest.mark.asyncio
async def test_close_only_dismisses(
    dispatcher: NotificationDispatcher, surface: FakeSurface, navigator: FakeNavigator
) -> None:
    record = await dispatcher.handle_push("hello")

    assert await dispatcher.handle_interaction(record, "close") is None
    assert surface.closed == [record.id]
    assert navigator.opened == []
    assert navigator.focused == []


@pytest.mark.asyncio
async def test_body_click_focuses_root(
    dispatcher: NotificationDispatcher, surface: FakeSurface, navigator: FakeNavigator
) -> None:
    record = await dispatcher.handle_push("hello")

    assert await dispatcher.handle_interaction(record, None) == "/"
    assert surface.closed == [record.id]
    assert navigator.focused == ["/"]


@pytest.mark.asyncio
async def test_unknown_action_is_noop_dismiss(
    dispatcher: NotificationDispatcher, surface: FakeSurface, navigator: FakeNavigator
) -> None:
    record = await dispatcher.handle_push("hello")

    assert await dispatcher.handle_interaction(record, "snooze") is None
    assert surface.closed == [record.id]
    assert navigator.opened == []
    assert navigator.focused == []


@pytest.mark.asyncio
async def test_custom_defaults(surface: FakeSurface, navigator: FakeNavigator) -> None:
    dispatcher = NotificationDispatcher(
        surface=surface,
        navigator=navigator,
        title="Alerts",
        actions=[NotificationAction(action="open", title="Open", route="/alerts")],
        dismiss_actions=["dismiss"],
        default_route="/home",
    )

    record = await dispatcher.handle_push("x")
    assert record.title == "Alerts"
    assert await dispatcher.handle_interaction(record, "open") == "/alerts"
    assert await dispatcher.handle_interaction(record, None) == "/home"
    assert navigator.opened == ["/alerts"]
    assert navigator.focused == ["/home"]
