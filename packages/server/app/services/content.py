"""
Content service: snippets, docs and bugs, plus the likes, bookmarks and
comments on them.

Handles:
- Creation of each content kind (bugs get a 24h lifetime)
- Per-kind listings and single-item reads that hide expired bugs
- Bug status changes gated on existence, expiry and authorship
- Like and bookmark toggles, and comments with the recipients their notifications need
- The hourly sweep of expired bugs

Every mutation commits before returning so routers can schedule fan-out and
notifications against committed rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Optional, Union

import structlog
from fastapi import HTTPException
from sqlalchemy import delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.config import get_settings
from app.models.base import utcnow
from app.models.content import Bug, ContentBase
from app.models.interaction import Bookmark, Comment, Like
from app.models.notification import Notification
from app.models.user import User
from app.services.feed import (
    CONTENT_MODELS,
    REF_COLUMNS,
    annotated_select,
    row_to_item,
    to_feed_item,
    visibility_clause,
)
from app.services.notifications import author_info
from devhub_shared.schemas.common import BugSeverity, BugStatus, ContentKind
from devhub_shared.schemas.content import (
    BookmarkToggleResponse,
    BugCreate,
    CommentCreate,
    CommentRead,
    ContentRef,
    DocCreate,
    LikeToggleResponse,
    SnippetCreate,
)
from devhub_shared.schemas.feed import FeedItem, FeedResponse

log = structlog.get_logger()
settings = get_settings()

NEW_CONTENT_EVENTS: dict[ContentKind, str] = {
    ContentKind.SNIPPET: "new-snippet",
    ContentKind.DOC: "new-doc",
    ContentKind.BUG: "new-bug",
}

ContentCreate = Union[SnippetCreate, DocCreate, BugCreate]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def get_content_or_404(
    session: AsyncSession, kind: ContentKind, content_id: uuid.UUID
) -> ContentBase:
    item = await session.get(CONTENT_MODELS[kind], content_id)
    if not item:
        raise HTTPException(status_code=404, detail=f"{kind.value.capitalize()} not found")
    return item


async def get_feed_item(
    session: AsyncSession,
    kind: ContentKind,
    content_id: uuid.UUID,
    viewer_id: Optional[uuid.UUID] = None,
) -> FeedItem:
    """Load one content item with its author and counts."""
    model = CONTENT_MODELS[kind]
    result = await session.execute(annotated_select(kind, viewer_id).where(model.id == content_id))
    row = result.first()
    if row is None:
        raise HTTPException(status_code=404, detail=f"{kind.value.capitalize()} not found")
    return row_to_item(kind, row, personalized=viewer_id is not None)


def new_content_event(kind: ContentKind, item: ContentBase) -> Optional[str]:
    """Fan-out event name for freshly created content, or None when it stays private."""
    if kind is not ContentKind.BUG and not item.is_public:
        return None
    return NEW_CONTENT_EVENTS[kind]


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


async def list_content(
    session: AsyncSession,
    kind: ContentKind,
    viewer_id: uuid.UUID,
    page: int,
    limit: int,
    *,
    severity: Optional[BugSeverity] = None,
    status: Optional[BugStatus] = None,
    now: Optional[datetime] = None,
) -> FeedResponse:
    """
    One kind, newest first: public snippets and docs, or bugs that have not
    expired yet. Expiry is checked here even though the sweep also deletes them.
    """
    model = CONTENT_MODELS[kind]
    filters = [visibility_clause(kind, now or utcnow())]
    if kind is ContentKind.BUG:
        if severity:
            filters.append(Bug.severity == severity.value)
        if status:
            filters.append(Bug.status == status.value)

    skip = (page - 1) * limit
    total = (
        await session.execute(select(func.count()).select_from(model).where(*filters))
    ).scalar_one()
    result = await session.execute(
        annotated_select(kind, viewer_id)
        .where(*filters)
        .order_by(model.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    items = [row_to_item(kind, row, personalized=True) for row in result.all()]
    return FeedResponse(data=items, total=total, page=page, has_more=skip + len(items) < total)


async def get_content_detail(
    session: AsyncSession,
    kind: ContentKind,
    content_id: uuid.UUID,
    viewer_id: uuid.UUID,
    *,
    now: Optional[datetime] = None,
) -> FeedItem:
    """Single item for the viewer: 404 unknown, 403 someone else's private item, 410 expired bug."""
    item = await get_feed_item(session, kind, content_id, viewer_id)
    if kind is ContentKind.BUG:
        if item.expires_at <= (now or utcnow()):
            raise HTTPException(status_code=410, detail="Bug report has expired")
    elif not item.is_public and item.author_id != viewer_id:
        raise HTTPException(status_code=403, detail="Access denied")
    return item


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def create_content(
    session: AsyncSession,
    kind: ContentKind,
    author: User,
    data: ContentCreate,
    *,
    now: Optional[datetime] = None,
) -> tuple[ContentBase, FeedItem]:
    """Insert one content item. Returns the row and its feed representation."""
    fields = data.model_dump(mode="json")
    if kind is ContentKind.BUG:
        created_at = now or utcnow()
        fields["created_at"] = created_at
        fields["updated_at"] = created_at
        fields["expires_at"] = created_at + timedelta(hours=settings.bug_ttl_hours)

    item = CONTENT_MODELS[kind](author_id=author.id, **fields)
    session.add(item)
    await session.commit()
    await session.refresh(item)

    log.info(
        "content.created",
        kind=kind.value,
        content_id=str(item.id),
        author_id=str(author.id),
        tags=len(item.tags),
    )
    return item, to_feed_item(kind, item, author, is_liked=False, is_bookmarked=False)


# ---------------------------------------------------------------------------
# Bug status
# ---------------------------------------------------------------------------


async def update_bug_status(
    session: AsyncSession,
    bug_id: uuid.UUID,
    actor_id: uuid.UUID,
    status: BugStatus,
    *,
    now: Optional[datetime] = None,
) -> Bug:
    """Change a bug's status. Only the author may, and only before it expires."""
    bug = await get_content_or_404(session, ContentKind.BUG, bug_id)

    if bug.expires_at <= (now or utcnow()):
        raise HTTPException(status_code=410, detail="Bug report has expired")

    if bug.author_id != actor_id:
        raise HTTPException(status_code=403, detail="Only the author can change the status")

    previous = bug.status
    bug.status = status.value
    session.add(bug)
    await session.commit()
    await session.refresh(bug)

    log.info("bugs.status_updated", bug_id=str(bug.id), old_status=previous, new_status=bug.status)
    return bug


# ---------------------------------------------------------------------------
# Likes and bookmarks
# ---------------------------------------------------------------------------

Marker = Union[type[Like], type[Bookmark]]


async def count_markers(
    session: AsyncSession, model: Marker, kind: ContentKind, content_id: uuid.UUID
) -> int:
    ref_column = getattr(model, REF_COLUMNS[kind])
    result = await session.execute(
        select(func.count()).select_from(model).where(ref_column == content_id)
    )
    return result.scalar_one()


async def _toggle_marker(
    session: AsyncSession,
    model: Marker,
    user_id: uuid.UUID,
    ref: ContentRef,
) -> tuple[bool, int, uuid.UUID]:
    """Add or remove the user's like/bookmark. Returns (now set, total, content author id)."""
    item = await get_content_or_404(session, ref.content_type, ref.content_id)
    ref_column = REF_COLUMNS[ref.content_type]

    result = await session.execute(
        select(model).where(
            model.user_id == user_id,
            getattr(model, ref_column) == ref.content_id,
        )
    )
    existing = result.scalar_one_or_none()

    if existing:
        await session.delete(existing)
        active = False
    else:
        session.add(model(user_id=user_id, **{ref_column: ref.content_id}))
        active = True
    await session.commit()

    total = await count_markers(session, model, ref.content_type, ref.content_id)
    log.info(
        f"{model.__tablename__}.toggled",
        kind=ref.content_type.value,
        content_id=str(ref.content_id),
        user_id=str(user_id),
        active=active,
    )
    return active, total, item.author_id


async def toggle_like(
    session: AsyncSession,
    user_id: uuid.UUID,
    ref: ContentRef,
) -> tuple[LikeToggleResponse, uuid.UUID]:
    """Like or unlike. Returns the new state and the content author's id."""
    liked, likes_count, author_id = await _toggle_marker(session, Like, user_id, ref)
    return LikeToggleResponse(liked=liked, likes_count=likes_count), author_id


async def toggle_bookmark(
    session: AsyncSession,
    user_id: uuid.UUID,
    ref: ContentRef,
) -> BookmarkToggleResponse:
    bookmarked, bookmarks_count, _ = await _toggle_marker(session, Bookmark, user_id, ref)
    return BookmarkToggleResponse(bookmarked=bookmarked, bookmarks_count=bookmarks_count)


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


async def add_comment(
    session: AsyncSession,
    author: User,
    data: CommentCreate,
) -> tuple[CommentRead, uuid.UUID, Optional[uuid.UUID]]:
    """
    Add a comment or a reply.

    Returns the comment, the content author's id and, for replies, the
    parent comment author's id.
    """
    item = await get_content_or_404(session, data.content_type, data.content_id)
    ref_column = REF_COLUMNS[data.content_type]

    parent_author_id = None
    if data.parent_id:
        parent = await session.get(Comment, data.parent_id)
        if not parent or getattr(parent, ref_column) != data.content_id:
            raise HTTPException(status_code=404, detail="Parent comment not found")
        parent_author_id = parent.author_id

    comment = Comment(
        content=data.content,
        author_id=author.id,
        parent_id=data.parent_id,
        **{ref_column: data.content_id},
    )
    session.add(comment)
    await session.commit()
    await session.refresh(comment)

    log.info(
        "comments.created",
        comment_id=str(comment.id),
        kind=data.content_type.value,
        content_id=str(data.content_id),
        reply=parent_author_id is not None,
    )
    read = CommentRead(
        id=comment.id,
        content=comment.content,
        author=author_info(author),
        parent_id=comment.parent_id,
        snippet_id=comment.snippet_id,
        doc_id=comment.doc_id,
        bug_id=comment.bug_id,
        created_at=comment.created_at,
    )
    return read, item.author_id, parent_author_id


# ---------------------------------------------------------------------------
# Expiry sweep
# ---------------------------------------------------------------------------


async def delete_expired_bugs(session: AsyncSession, now: Optional[datetime] = None) -> int:
    """
    Delete every bug past its ``expires_at`` together with the likes,
    bookmarks, comments and notifications pointing at it. One transaction.
    Returns the number of bugs removed.
    """
    now = now or utcnow()
    result = await session.execute(select(Bug.id).where(Bug.expires_at <= now))
    bug_ids = [row[0] for row in result.all()]
    if not bug_ids:
        return 0

    comment_ids = select(Comment.id).where(Comment.bug_id.in_(bug_ids))
    statements = [
        delete(Notification).where(
            or_(Notification.bug_id.in_(bug_ids), Notification.comment_id.in_(comment_ids))
        ),
        delete(Like).where(Like.bug_id.in_(bug_ids)),
        delete(Bookmark).where(Bookmark.bug_id.in_(bug_ids)),
        # Replies first so no row is left pointing at a deleted parent
        delete(Comment).where(Comment.bug_id.in_(bug_ids), Comment.parent_id.is_not(None)),
        delete(Comment).where(Comment.bug_id.in_(bug_ids)),
        delete(Bug).where(Bug.id.in_(bug_ids)),
    ]
    for stmt in statements:
        await session.execute(stmt, execution_options={"synchronize_session": False})
    await session.commit()

    log.info("bugs.expired_deleted", count=len(bug_ids))
    return len(bug_ids)
