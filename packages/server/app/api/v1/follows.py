"""
Follow endpoints.

POST /api/v1/follows/{user_id}   Toggle following a user (FOLLOW notification on follow)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.core.auth import AuthenticatedUser, get_current_user
from app.core.database import get_session, get_session_factory
from app.core.realtime import SubscriptionRegistry, get_registry
from app.services.follows import count_followers, toggle_follow
from app.services.notifications import dispatch_notification
from devhub_shared.schemas.common import NotificationType
from devhub_shared.schemas.content import FollowToggleResponse
from devhub_shared.schemas.notifications import NotificationCreate

router = APIRouter()


@router.post("/{user_id}", response_model=FollowToggleResponse)
async def toggle_follow_endpoint(
    user_id: uuid.UUID,
    background_tasks: BackgroundTasks,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    session_factory: sessionmaker = Depends(get_session_factory),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    following = await toggle_follow(session, auth.user_id, user_id)
    if following:
        background_tasks.add_task(
            dispatch_notification,
            registry,
            session_factory,
            NotificationCreate(
                recipient_id=user_id,
                sender_id=auth.user_id,
                type=NotificationType.FOLLOW,
            ),
        )
    return FollowToggleResponse(
        following=following,
        followers_count=await count_followers(session, user_id),
    )
