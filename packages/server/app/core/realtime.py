"""
In-process subscription registry for WebSocket clients.

Topics are either a user id (private notification/feed channel) or a
content item id (live updates for everyone viewing that item). Memberships
live exactly as long as the connection: nothing is persisted or replayed,
and publishing to a topic with no members is a no-op.

Lifecycle:
- ``init()`` before the first connection is accepted
- ``shutdown()`` closes every connection and drops all memberships

The registry is process-local. Running several API processes needs an
external message bus in front of ``publish``.
"""

from __future__ import annotations

import json
import uuid
from typing import Any

import structlog
from fastapi import WebSocket
from fastapi.requests import HTTPConnection
from fastapi.encoders import jsonable_encoder

log = structlog.get_logger()


class Connection:
    """One live WebSocket and the topics it has joined."""

    __slots__ = ("id", "websocket", "user_id", "topics")

    def __init__(self, websocket: WebSocket, user_id: uuid.UUID | None = None):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.user_id = user_id
        self.topics: set[str] = set()


class SubscriptionRegistry:
    """Maps connections to topic memberships and delivers published events."""

    def __init__(self) -> None:
        # connection_id -> Connection
        self._connections: dict[str, Connection] = {}
        # topic_id -> connection_ids
        self._topics: dict[str, set[str]] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def connections(self) -> dict[str, Connection]:
        return self._connections

    async def init(self) -> None:
        self._running = True
        log.info("realtime.started")

    async def shutdown(self) -> None:
        """Close all sockets and forget every membership."""
        self._running = False
        for conn in list(self._connections.values()):
            try:
                await conn.websocket.close(code=1001, reason="server_shutdown")
            except Exception:
                log.debug("realtime.close_failed", connection_id=conn.id)
        count = len(self._connections)
        self._connections.clear()
        self._topics.clear()
        log.info("realtime.stopped", dropped_connections=count)

    # --- Connections ---

    async def connect(self, websocket: WebSocket, user_id: uuid.UUID | None = None) -> Connection:
        """Accept a WebSocket and register it with no memberships."""
        if not self._running:
            raise RuntimeError("Subscription registry is not running")
        await websocket.accept()
        conn = Connection(websocket, user_id)
        self._connections[conn.id] = conn
        log.info("realtime.connected", connection_id=conn.id, user_id=str(user_id) if user_id else None)
        return conn

    def leave_all(self, connection_id: str) -> None:
        """Drop a connection and all of its memberships."""
        conn = self._connections.pop(connection_id, None)
        if conn is None:
            return
        for topic_id in conn.topics:
            members = self._topics.get(topic_id)
            if members is None:
                continue
            members.discard(connection_id)
            if not members:
                del self._topics[topic_id]
        conn.topics.clear()
        log.info("realtime.disconnected", connection_id=connection_id)

    # --- Memberships ---

    def join(self, connection_id: str, topic_id: str | uuid.UUID) -> bool:
        """Add a membership. Returns False if it already existed."""
        conn = self._connections.get(connection_id)
        if conn is None:
            raise KeyError(f"Unknown connection {connection_id}")
        topic = str(topic_id)
        if topic in conn.topics:
            return False
        conn.topics.add(topic)
        self._topics.setdefault(topic, set()).add(connection_id)
        log.debug("realtime.joined", connection_id=connection_id, topic=topic)
        return True

    def leave(self, connection_id: str, topic_id: str | uuid.UUID) -> bool:
        """Remove a membership. Returns False if there was none."""
        topic = str(topic_id)
        conn = self._connections.get(connection_id)
        if conn is None or topic not in conn.topics:
            return False
        conn.topics.discard(topic)
        members = self._topics.get(topic)
        if members is not None:
            members.discard(connection_id)
            if not members:
                del self._topics[topic]
        log.debug("realtime.left", connection_id=connection_id, topic=topic)
        return True

    def members(self, topic_id: str | uuid.UUID) -> set[str]:
        return set(self._topics.get(str(topic_id), ()))

    # --- Delivery ---

    async def publish(self, topic_id: str | uuid.UUID, event_name: str, payload: Any) -> int:
        """
        Send ``{"event": event_name, "data": payload}`` to every connection
        currently joined to the topic. Returns the number of deliveries.

        Connections whose send fails are treated as gone and dropped.
        """
        topic = str(topic_id)
        connection_ids = self._topics.get(topic)
        if not connection_ids:
            return 0

        msg_text = json.dumps({"event": event_name, "data": jsonable_encoder(payload)})

        delivered = 0
        dead: list[str] = []
        for connection_id in list(connection_ids):
            conn = self._connections.get(connection_id)
            if conn is None:
                continue
            try:
                await conn.websocket.send_text(msg_text)
                delivered += 1
            except Exception:
                dead.append(connection_id)

        for connection_id in dead:
            log.warning("realtime.dead_connection", connection_id=connection_id, topic=topic)
            self.leave_all(connection_id)

        return delivered


def get_registry(connection: HTTPConnection) -> SubscriptionRegistry:
    """FastAPI dependency (HTTP and WebSocket routes) returning the app's registry."""
    return connection.app.state.registry
