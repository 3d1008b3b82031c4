from collections import defaultdict
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from musicsync.dependencies import get_event_router, get_websocket_manager
from musicsync.main import app
from musicsync.schemas.commands import parse_command
from musicsync.services.event_router import EventRouter
from musicsync.services.room_registry import RoomRegistry
from musicsync.services.session_table import SessionTable
from musicsync.services.websocket_manager import WebSocketManager

FIXED_NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
ALLOWED_ORIGIN = "http://localhost:5173"


class RecordingTransport:
    """Stands in for the websocket manager and keeps every frame sent"""

    def __init__(self):
        self.sent: dict[str, list[dict]] = defaultdict(list)

    async def send(self, connection_id: str, message: dict) -> None:
        self.sent[connection_id].append(message)

    def events(self, connection_id: str, event_type: str | None = None) -> list[dict]:
        return [
            m for m in self.sent.get(connection_id, [])
            if event_type is None or m["type"] == event_type
        ]

    def types(self, connection_id: str) -> list[str]:
        return [m["type"] for m in self.sent.get(connection_id, [])]

    def clear(self) -> None:
        self.sent.clear()


class SequenceCodes:
    """Room code generator that replays a fixed sequence"""

    def __init__(self, *codes: str):
        self.codes = list(codes)
        self.calls = 0

    def __call__(self, length: int) -> str:
        code = self.codes[min(self.calls, len(self.codes) - 1)]
        self.calls += 1
        return code


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def registry():
    return RoomRegistry(code_generator=SequenceCodes("AB12CD", "EF34GH", "IJ56KL"))


@pytest.fixture
def sessions():
    return SessionTable()


@pytest.fixture
def router(registry, sessions, transport):
    return EventRouter(registry, sessions, transport, clock=lambda: FIXED_NOW)


@pytest.fixture
def send(router):
    """Dispatch a raw frame from a connection, the way the websocket loop does"""
    async def _send(connection_id: str, event_type: str, **data):
        await router.dispatch(connection_id, parse_command({"type": event_type, "data": data}))
    return _send


@pytest.fixture
async def room_code(send, transport):
    """A room created by a connection that did not join it"""
    await send("creator", "create-room", displayName="Ann")
    code = transport.events("creator", "room-created")[0]["data"]["code"]
    transport.clear()
    return code


@pytest.fixture
def websocket_manager():
    return WebSocketManager(allowed_origins=[ALLOWED_ORIGIN])


@pytest.fixture
def client(websocket_manager):
    event_router = EventRouter(RoomRegistry(), SessionTable(), websocket_manager)
    app.dependency_overrides[get_websocket_manager] = lambda: websocket_manager
    app.dependency_overrides[get_event_router] = lambda: event_router
    with TestClient(app) as test_client:
        test_client.event_router = event_router
        yield test_client
    app.dependency_overrides.clear()
