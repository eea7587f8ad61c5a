"""
Fan-out of write-path events to an author's audience.

The audience of an author is every follower plus the author themselves, so
the author's own open tabs reflect the action without a round-trip.
Delivery is best-effort: followers who are not connected get nothing and
are never backfilled. Nothing in here may raise into the caller; the
content mutation that triggered the event has already committed.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any

import structlog
from sqlalchemy.orm import sessionmaker

from app.core.realtime import SubscriptionRegistry
from app.services.follows import get_follower_ids

log = structlog.get_logger()


async def resolve_audience(session_factory: sessionmaker, author_id: uuid.UUID) -> list[str]:
    """Topic ids of the author's followers followed by the author's own topic."""
    async with session_factory() as session:
        follower_ids = await get_follower_ids(session, author_id)
    audience = [str(fid) for fid in follower_ids if fid != author_id]
    audience.append(str(author_id))
    return audience


async def publish_to_followers(
    registry: SubscriptionRegistry,
    session_factory: sessionmaker,
    author_id: uuid.UUID,
    event_name: str,
    payload: Any,
) -> None:
    """Publish ``payload`` under ``event_name`` to every audience member's channel."""
    try:
        audience = await resolve_audience(session_factory, author_id)
    except Exception:
        log.exception("fanout.lookup_failed", author_id=str(author_id), event_name=event_name)
        return

    results = await asyncio.gather(
        *(registry.publish(topic, event_name, payload) for topic in audience),
        return_exceptions=True,
    )

    delivered = 0
    for topic, result in zip(audience, results):
        if isinstance(result, BaseException):
            log.error("fanout.publish_failed", topic=topic, event_name=event_name, error=str(result))
        else:
            delivered += result

    log.info(
        "fanout.published",
        author_id=str(author_id),
        event_name=event_name,
        audience=len(audience),
        delivered=delivered,
    )


async def publish_to_room(
    registry: SubscriptionRegistry,
    room_id: uuid.UUID | str,
    event_name: str,
    payload: Any,
) -> None:
    """Publish to a single content room. Failures are logged, never raised."""
    try:
        delivered = await registry.publish(room_id, event_name, payload)
    except Exception:
        log.exception("fanout.room_publish_failed", room=str(room_id), event_name=event_name)
        return
    log.debug("fanout.room_published", room=str(room_id), event_name=event_name, delivered=delivered)
