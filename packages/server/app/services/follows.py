"""
Follow graph queries and the follow/unfollow toggle.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.follow import Follow
from app.models.user import User

log = structlog.get_logger()


async def get_following_ids(session: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    """Ids of the users ``user_id`` follows."""
    result = await session.execute(
        select(Follow.following_id).where(Follow.follower_id == user_id)
    )
    return [row[0] for row in result.all()]


async def get_follower_ids(session: AsyncSession, user_id: uuid.UUID) -> list[uuid.UUID]:
    """Ids of the users following ``user_id``."""
    result = await session.execute(
        select(Follow.follower_id).where(Follow.following_id == user_id)
    )
    return [row[0] for row in result.all()]


async def count_followers(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
    )
    return result.scalar_one()


async def toggle_follow(
    session: AsyncSession,
    follower_id: uuid.UUID,
    following_id: uuid.UUID,
) -> bool:
    """Follow or unfollow. Returns True when the edge now exists.

    Commits before returning so callers can dispatch notifications.
    """
    if follower_id == following_id:
        raise HTTPException(status_code=400, detail="You cannot follow yourself")

    target = await session.get(User, following_id)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    result = await session.execute(
        select(Follow).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
        )
    )
    existing = result.scalar_one_or_none()

    if existing:
        await session.delete(existing)
        await session.commit()
        log.info("follows.removed", follower_id=str(follower_id), following_id=str(following_id))
        return False

    session.add(Follow(follower_id=follower_id, following_id=following_id))
    await session.commit()
    log.info("follows.created", follower_id=str(follower_id), following_id=str(following_id))
    return True
