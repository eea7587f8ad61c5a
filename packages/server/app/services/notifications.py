"""
Notification engine: persisted, user-visible notifications.

Handles:
- Creation with self-action suppression and an immediate push to the
  recipient's private channel
- Listing with sender and referenced-content summaries
- Mark-as-read scoped to the owning user
- Unread badge count
"""

from __future__ import annotations

import uuid
from typing import Optional, Sequence

import structlog
from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from app.core.realtime import SubscriptionRegistry
from app.models.content import Bug, Doc, Snippet
from app.models.interaction import Comment
from app.models.notification import Notification
from app.models.user import User
from devhub_shared.schemas.common import AuthorInfo
from devhub_shared.schemas.notifications import (
    CommentSummary,
    ContentSummary,
    NotificationCreate,
    NotificationListResponse,
    NotificationRead,
)

log = structlog.get_logger()

NEW_NOTIFICATION_EVENT = "new_notification"


def author_info(user: User) -> AuthorInfo:
    return AuthorInfo(id=user.id, username=user.username, name=user.name, avatar=user.avatar)


def _to_read(notification: Notification, sender: User) -> NotificationRead:
    return NotificationRead(
        id=notification.id,
        type=notification.type,
        recipient_id=notification.recipient_id,
        sender_id=notification.sender_id,
        read=notification.read,
        created_at=notification.created_at,
        sender=author_info(sender),
        snippet_id=notification.snippet_id,
        doc_id=notification.doc_id,
        bug_id=notification.bug_id,
        comment_id=notification.comment_id,
    )


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def create_notification(
    session: AsyncSession,
    registry: SubscriptionRegistry,
    data: NotificationCreate,
) -> Optional[NotificationRead]:
    """
    Persist one notification and push it to the recipient.

    Returns None without writing or publishing when the sender is the
    recipient. Identical calls create distinct rows; callers that toggle
    (like/unlike) must only call this on the "on" transition.
    """
    if data.recipient_id == data.sender_id:
        log.debug("notifications.self_suppressed", user_id=str(data.sender_id), type=data.type.value)
        return None

    sender = await session.get(User, data.sender_id)
    if not sender:
        log.warning("notifications.unknown_sender", sender_id=str(data.sender_id))
        return None

    notification = Notification(
        type=data.type.value,
        **data.model_dump(exclude={"type"}),
    )
    session.add(notification)
    await session.commit()

    created = _to_read(notification, sender)
    log.info(
        "notifications.created",
        notification_id=str(created.id),
        type=created.type.value,
        recipient_id=str(created.recipient_id),
    )

    try:
        await registry.publish(
            str(data.recipient_id), NEW_NOTIFICATION_EVENT, created.model_dump(mode="json")
        )
    except Exception:
        log.exception("notifications.publish_failed", notification_id=str(created.id))

    return created


async def dispatch_notification(
    registry: SubscriptionRegistry,
    session_factory: sessionmaker,
    data: NotificationCreate,
) -> None:
    """Post-commit entry point: runs in its own session and never raises."""
    try:
        async with session_factory() as session:
            await create_notification(session, registry, data)
    except Exception:
        log.exception(
            "notifications.dispatch_failed",
            type=data.type.value,
            recipient_id=str(data.recipient_id),
        )


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def get_notifications(
    session: AsyncSession,
    user_id: uuid.UUID,
    page: int,
    limit: int,
) -> NotificationListResponse:
    skip = (page - 1) * limit
    result = await session.execute(
        select(
            Notification,
            User,
            Snippet.title.label("snippet_title"),
            Doc.title.label("doc_title"),
            Bug.title.label("bug_title"),
            Comment.content.label("comment_content"),
        )
        .join(User, User.id == Notification.sender_id)
        .outerjoin(Snippet, Snippet.id == Notification.snippet_id)
        .outerjoin(Doc, Doc.id == Notification.doc_id)
        .outerjoin(Bug, Bug.id == Notification.bug_id)
        .outerjoin(Comment, Comment.id == Notification.comment_id)
        .where(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc())
        .offset(skip)
        .limit(limit)
    )

    items: list[NotificationRead] = []
    for notification, sender, snippet_title, doc_title, bug_title, comment_content in result.all():
        item = _to_read(notification, sender)
        if snippet_title is not None:
            item.snippet = ContentSummary(id=notification.snippet_id, title=snippet_title)
        if doc_title is not None:
            item.doc = ContentSummary(id=notification.doc_id, title=doc_title)
        if bug_title is not None:
            item.bug = ContentSummary(id=notification.bug_id, title=bug_title)
        if comment_content is not None:
            item.comment = CommentSummary(id=notification.comment_id, content=comment_content)
        items.append(item)

    total = (
        await session.execute(
            select(func.count()).select_from(Notification).where(Notification.recipient_id == user_id)
        )
    ).scalar_one()

    return NotificationListResponse(notifications=items, total=total, page=page, limit=limit)


async def get_unread_count(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.recipient_id == user_id, Notification.read == False)  # noqa: E712
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Mark read
# ---------------------------------------------------------------------------


async def mark_notifications_as_read(
    session: AsyncSession,
    user_id: uuid.UUID,
    notification_ids: Optional[Sequence[uuid.UUID]] = None,
) -> int:
    """
    Mark notifications read. No ids means all of the user's notifications.

    The recipient filter always applies, so ids that belong to someone else
    are skipped silently. Returns the number of rows updated.
    """
    stmt = update(Notification).where(Notification.recipient_id == user_id)
    if notification_ids:
        stmt = stmt.where(Notification.id.in_(list(notification_ids)))
    result = await session.execute(stmt.values(read=True))
    await session.commit()
    log.info("notifications.marked_read", user_id=str(user_id), count=result.rowcount)
    return result.rowcount
