"""
Interaction endpoints: likes, bookmarks and comments on any content kind.

POST /api/v1/likes      Toggle a like; pushes like-updated to the content room
POST /api/v1/bookmarks  Toggle a bookmark for the caller
POST /api/v1/comments   Comment or reply; pushes new-comment to the content room
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.core.auth import AuthenticatedUser, get_current_user
from app.core.database import get_session, get_session_factory
from app.core.realtime import SubscriptionRegistry, get_registry
from app.services.content import add_comment, toggle_bookmark, toggle_like
from app.services.fanout import publish_to_room
from app.services.feed import REF_COLUMNS
from app.services.notifications import dispatch_notification
from devhub_shared.schemas.common import NotificationType
from devhub_shared.schemas.content import (
    BookmarkToggleResponse,
    CommentCreate,
    CommentRead,
    ContentRef,
    LikeToggleResponse,
)
from devhub_shared.schemas.notifications import NotificationCreate

LIKE_UPDATED_EVENT = "like-updated"
NEW_COMMENT_EVENT = "new-comment"

router = APIRouter()


@router.post("/likes", response_model=LikeToggleResponse)
async def toggle_like_endpoint(
    body: ContentRef,
    background_tasks: BackgroundTasks,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    session_factory: sessionmaker = Depends(get_session_factory),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    """Like or unlike. Only the like transition notifies the author."""
    result, author_id = await toggle_like(session, auth.user_id, body)

    background_tasks.add_task(
        publish_to_room,
        registry,
        body.content_id,
        LIKE_UPDATED_EVENT,
        {
            "content_type": body.content_type.value,
            "content_id": str(body.content_id),
            "user_id": str(auth.user_id),
            "liked": result.liked,
            "likes_count": result.likes_count,
        },
    )
    if result.liked:
        background_tasks.add_task(
            dispatch_notification,
            registry,
            session_factory,
            NotificationCreate(
                recipient_id=author_id,
                sender_id=auth.user_id,
                type=NotificationType.LIKE,
                **{REF_COLUMNS[body.content_type]: body.content_id},
            ),
        )
    return result


@router.post("/bookmarks", response_model=BookmarkToggleResponse)
async def toggle_bookmark_endpoint(
    body: ContentRef,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await toggle_bookmark(session, auth.user_id, body)


@router.post("/comments", response_model=CommentRead, status_code=201)
async def create_comment_endpoint(
    body: CommentCreate,
    background_tasks: BackgroundTasks,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    session_factory: sessionmaker = Depends(get_session_factory),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    """
    Comment on a content item, or reply when ``parent_id`` is given.

    The content author gets a COMMENT notification and, for replies, the
    parent comment's author gets a REPLY. One person is never notified
    twice for the same comment: REPLY wins. Self-actions notify nobody.
    """
    comment, content_author_id, parent_author_id = await add_comment(session, auth.user, body)
    content_ref = {REF_COLUMNS[body.content_type]: body.content_id}

    background_tasks.add_task(
        publish_to_room,
        registry,
        body.content_id,
        NEW_COMMENT_EVENT,
        comment.model_dump(mode="json"),
    )

    recipients = {content_author_id: NotificationType.COMMENT}
    if parent_author_id:
        recipients[parent_author_id] = NotificationType.REPLY
    for recipient_id, notification_type in recipients.items():
        background_tasks.add_task(
            dispatch_notification,
            registry,
            session_factory,
            NotificationCreate(
                recipient_id=recipient_id,
                sender_id=auth.user_id,
                type=notification_type,
                comment_id=comment.id,
                **content_ref,
            ),
        )
    return comment
