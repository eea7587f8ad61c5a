"""
WebSocket endpoint tests.

Covers:
- Token authentication on connect
- Frame types: ping, join-user-room, join-content-room, leave-content-room
- Memberships dropped when the socket closes
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.core.auth import create_jwt
from app.core.database import get_session_factory
from app.core.realtime import SubscriptionRegistry
from app.main import app as fastapi_app


@pytest.fixture
async def ws_user(make_user):
    return await make_user()


@pytest.fixture
def ws_client(session_factory, redis_mock):
    registry = SubscriptionRegistry()
    fastapi_app.dependency_overrides[get_session_factory] = lambda: session_factory
    previous_registry = fastapi_app.state.registry
    fastapi_app.state.registry = registry

    with patch("app.core.auth.get_redis", AsyncMock(return_value=redis_mock)):
        with TestClient(fastapi_app) as tc:
            yield tc, registry

    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.registry = previous_registry


def _url(user) -> str:
    token, _ = create_jwt(user.id)
    return f"/api/v1/ws?token={token}"


class TestConnect:
    def test_missing_token_is_rejected(self, ws_client):
        tc, _ = ws_client
        with pytest.raises(WebSocketDisconnect) as exc:
            with tc.websocket_connect("/api/v1/ws"):
                pass
        assert exc.value.code == 4001

    def test_bad_token_is_rejected(self, ws_client):
        tc, _ = ws_client
        with pytest.raises(WebSocketDisconnect) as exc:
            with tc.websocket_connect("/api/v1/ws?token=garbage"):
                pass
        assert exc.value.code == 4001

    def test_stopped_registry_is_unavailable(self, ws_client, ws_user):
        tc, _ = ws_client
        fastapi_app.state.registry = SubscriptionRegistry()
        with pytest.raises(WebSocketDisconnect) as exc:
            with tc.websocket_connect(_url(ws_user)):
                pass
        assert exc.value.code == 1013

    def test_ping(self, ws_client, ws_user):
        tc, _ = ws_client
        with tc.websocket_connect(_url(ws_user)) as ws:
            ws.send_json({"type": "ping"})
            assert ws.receive_json() == {"type": "pong"}


class TestRooms:
    def test_join_own_user_room_only(self, ws_client, ws_user):
        tc, registry = ws_client
        with tc.websocket_connect(_url(ws_user)) as ws:
            ws.send_json({"type": "join-user-room", "id": str(ws_user.id)})
            assert ws.receive_json() == {"type": "joined", "id": str(ws_user.id)}

            ws.send_json({"type": "join-user-room", "id": str(uuid.uuid4())})
            assert ws.receive_json()["code"] == "FORBIDDEN"

            assert len(registry.members(ws_user.id)) == 1

    def test_content_room_join_and_leave(self, ws_client, ws_user):
        tc, registry = ws_client
        room = str(uuid.uuid4())
        with tc.websocket_connect(_url(ws_user)) as ws:
            ws.send_json({"type": "join-content-room", "id": room})
            assert ws.receive_json() == {"type": "joined", "id": room}
            # Joining twice keeps a single membership
            ws.send_json({"type": "join-content-room", "id": room})
            ws.receive_json()
            assert len(registry.members(room)) == 1

            ws.send_json({"type": "leave-content-room", "id": room})
            assert ws.receive_json() == {"type": "left", "id": room}
            assert registry.members(room) == set()

    def test_bad_frames(self, ws_client, ws_user):
        tc, _ = ws_client
        with tc.websocket_connect(_url(ws_user)) as ws:
            ws.send_text("{not json")
            assert ws.receive_json()["code"] == "INVALID_JSON"

            ws.send_json({"type": "join-content-room", "id": "not-a-uuid"})
            assert ws.receive_json()["code"] == "INVALID_ROOM_ID"

            ws.send_json({"type": "subscribe"})
            assert ws.receive_json()["code"] == "UNKNOWN_FRAME"

    def test_disconnect_drops_memberships(self, ws_client, ws_user):
        tc, registry = ws_client
        room = str(uuid.uuid4())
        with tc.websocket_connect(_url(ws_user)) as ws:
            ws.send_json({"type": "join-content-room", "id": room})
            ws.receive_json()

        assert registry.members(room) == set()
        assert registry.connections == {}

    def test_dropped_connection_is_closed_on_next_frame(self, ws_client, ws_user):
        tc, registry = ws_client
        with tc.websocket_connect(_url(ws_user)) as ws:
            ws.send_json({"type": "ping"})
            ws.receive_json()

            # What publish does after a failed send
            registry.leave_all(next(iter(registry.connections)))

            ws.send_json({"type": "join-content-room", "id": str(uuid.uuid4())})
            with pytest.raises(WebSocketDisconnect) as exc:
                ws.receive_json()
            assert exc.value.code == 1011
        assert registry.connections == {}
