"""
Subscription registry tests.

Covers:
- Connection lifecycle (connect, leave_all, shutdown)
- Idempotent join and leave
- Publish envelope, empty topics, dead connection cleanup
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest

from app.core.realtime import SubscriptionRegistry


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_connect_requires_init(self, make_ws):
        registry = SubscriptionRegistry()
        with pytest.raises(RuntimeError):
            await registry.connect(make_ws())

    @pytest.mark.asyncio
    async def test_connect_accepts_socket(self, registry, make_ws):
        ws = make_ws()
        user_id = uuid.uuid4()
        conn = await registry.connect(ws, user_id)
        ws.accept.assert_awaited_once()
        assert conn.user_id == user_id
        assert conn.topics == set()
        assert conn.id in registry.connections

    @pytest.mark.asyncio
    async def test_shutdown_closes_and_forgets(self, make_ws):
        registry = SubscriptionRegistry()
        await registry.init()
        ws = make_ws()
        conn = await registry.connect(ws)
        registry.join(conn.id, "topic")

        await registry.shutdown()

        ws.close.assert_awaited_once()
        assert registry.running is False
        assert registry.connections == {}
        assert registry.members("topic") == set()

    @pytest.mark.asyncio
    async def test_leave_all_drops_every_membership(self, registry, make_ws):
        conn = await registry.connect(make_ws())
        registry.join(conn.id, "a")
        registry.join(conn.id, "b")

        registry.leave_all(conn.id)

        assert registry.members("a") == set()
        assert registry.members("b") == set()
        assert conn.id not in registry.connections
        # Unknown ids are ignored
        registry.leave_all(conn.id)


class TestMemberships:
    @pytest.mark.asyncio
    async def test_join_is_idempotent(self, registry, make_ws, frames):
        ws = make_ws()
        conn = await registry.connect(ws)
        topic = uuid.uuid4()

        assert registry.join(conn.id, topic) is True
        assert registry.join(conn.id, str(topic)) is False

        delivered = await registry.publish(topic, "new-comment", {"id": 1})

        assert delivered == 1
        assert frames(ws) == [{"event": "new-comment", "data": {"id": 1}}]

    @pytest.mark.asyncio
    async def test_join_unknown_connection(self, registry):
        with pytest.raises(KeyError):
            registry.join("missing", "topic")

    @pytest.mark.asyncio
    async def test_leave(self, registry, make_ws):
        conn = await registry.connect(make_ws())
        registry.join(conn.id, "topic")

        assert registry.leave(conn.id, "topic") is True
        assert registry.leave(conn.id, "topic") is False
        assert registry.members("topic") == set()


class TestPublish:
    @pytest.mark.asyncio
    async def test_publish_to_empty_topic_is_noop(self, registry):
        assert await registry.publish("nobody-here", "new-snippet", {}) == 0

    @pytest.mark.asyncio
    async def test_publish_reaches_only_members(self, registry, make_ws, frames):
        joined, other = make_ws(), make_ws()
        c1 = await registry.connect(joined)
        await registry.connect(other)
        registry.join(c1.id, "room")

        await registry.publish("room", "like-updated", {"likes_count": 3})

        assert frames(joined) == [{"event": "like-updated", "data": {"likes_count": 3}}]
        other.send_text.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_payload_is_json_encoded(self, registry, make_ws, frames):
        ws = make_ws()
        conn = await registry.connect(ws)
        registry.join(conn.id, "room")
        item_id = uuid.uuid4()

        await registry.publish("room", "new-doc", {"id": item_id})

        assert frames(ws)[0]["data"] == {"id": str(item_id)}

    @pytest.mark.asyncio
    async def test_dead_connection_is_dropped(self, registry, make_ws, frames):
        alive, dead = make_ws(), make_ws()
        dead.send_text = AsyncMock(side_effect=RuntimeError("socket closed"))
        c_alive = await registry.connect(alive)
        c_dead = await registry.connect(dead)
        registry.join(c_alive.id, "room")
        registry.join(c_dead.id, "room")

        delivered = await registry.publish("room", "new-bug", {"id": "b1"})

        assert delivered == 1
        assert registry.members("room") == {c_alive.id}
        assert c_dead.id not in registry.connections
