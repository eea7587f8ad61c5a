"""
Notification endpoints. Every route is scoped to the authenticated user.

GET  /api/v1/notifications                List, newest first
POST /api/v1/notifications/read           Mark some (or all) as read
GET  /api/v1/notifications/unread-count   Badge count
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import AuthenticatedUser, get_current_user
from app.core.database import get_session
from app.services.notifications import (
    get_notifications,
    get_unread_count,
    mark_notifications_as_read,
)
from devhub_shared.schemas.notifications import (
    MarkReadRequest,
    MarkReadResponse,
    NotificationListResponse,
    UnreadCountResponse,
)

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await get_notifications(session, auth.user_id, page, limit)


@router.post("/read", response_model=MarkReadResponse)
async def mark_read_endpoint(
    body: Optional[MarkReadRequest] = None,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Mark the given notifications read, or all of them when no ids are sent.

    Ids belonging to other users are ignored.
    """
    ids = body.notification_ids if body else None
    updated = await mark_notifications_as_read(session, auth.user_id, ids)
    return MarkReadResponse(updated=updated)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count_endpoint(
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return UnreadCountResponse(count=await get_unread_count(session, auth.user_id))
