"""
Realtime WebSocket endpoint.

WS /api/v1/ws?token=<jwt>

Client frames (JSON):
- {"type": "join-user-room", "id": <own user id>}   private notification/feed channel
- {"type": "join-content-room", "id": <content id>} live likes/comments/status
- {"type": "leave-content-room", "id": <content id>}
- {"type": "ping"}

Server pushes arrive as {"event": <name>, "data": <payload>}; control
replies (pong, joined, left, error) carry a "type" field instead.
"""

from __future__ import annotations

import json
import uuid
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import sessionmaker

from app.core.auth import authenticate_token
from app.core.database import get_session_factory
from app.core.realtime import SubscriptionRegistry, get_registry

log = structlog.get_logger()
router = APIRouter()

ROOM_FRAMES = {"join-user-room", "join-content-room", "leave-content-room"}


async def _send(websocket: WebSocket, frame: dict[str, Any]) -> None:
    await websocket.send_text(json.dumps(frame))


async def _send_error(websocket: WebSocket, code: str, message: str) -> None:
    await _send(websocket, {"type": "error", "code": code, "message": message})


@router.websocket("/ws")
async def realtime_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session_factory: sessionmaker = Depends(get_session_factory),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    """Authenticated WebSocket; memberships last exactly as long as the socket."""
    if not token:
        await websocket.close(code=4001, reason="authentication_required")
        return
    try:
        async with session_factory() as session:
            auth = await authenticate_token(token, session)
    except HTTPException:
        await websocket.close(code=4001, reason="authentication_failed")
        return

    if not registry.running:
        await websocket.close(code=1013, reason="realtime_unavailable")
        return

    conn = await registry.connect(websocket, auth.user_id)
    try:
        while True:
            data = await websocket.receive_text()
            if conn.id not in registry.connections:
                # Dropped by a failed publish while this loop was waiting
                log.info("realtime.stale_connection_closed", connection_id=conn.id)
                await websocket.close(code=1011, reason="connection_dropped")
                return
            try:
                frame = json.loads(data)
            except json.JSONDecodeError:
                await _send_error(websocket, "INVALID_JSON", "Could not parse message as JSON.")
                continue
            if not isinstance(frame, dict):
                await _send_error(websocket, "INVALID_FRAME", "Frames must be JSON objects.")
                continue

            frame_type = frame.get("type")

            # --- Ping/Pong ---
            if frame_type == "ping":
                await _send(websocket, {"type": "pong"})
                continue

            if frame_type not in ROOM_FRAMES:
                await _send_error(websocket, "UNKNOWN_FRAME", f"Unsupported frame type: {frame_type}")
                continue

            try:
                room_id = uuid.UUID(str(frame.get("id")))
            except ValueError:
                await _send_error(websocket, "INVALID_ROOM_ID", "id must be a UUID.")
                continue

            # --- Private user room: own id only ---
            if frame_type == "join-user-room":
                if room_id != auth.user_id:
                    await _send_error(websocket, "FORBIDDEN", "Cannot join another user's room.")
                    continue
                registry.join(conn.id, room_id)
                await _send(websocket, {"type": "joined", "id": str(room_id)})
                continue

            # --- Content rooms ---
            if frame_type == "join-content-room":
                registry.join(conn.id, room_id)
                await _send(websocket, {"type": "joined", "id": str(room_id)})
                continue

            registry.leave(conn.id, room_id)
            await _send(websocket, {"type": "left", "id": str(room_id)})

    except WebSocketDisconnect:
        registry.leave_all(conn.id)
    except Exception:
        log.exception("realtime.socket_error", connection_id=conn.id)
        registry.leave_all(conn.id)
