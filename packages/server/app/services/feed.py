"""
Feed aggregation: one chronological feed over snippets, docs and bugs.

Pipeline for a viewer:
  1. Audience:   authors the viewer follows, plus the viewer
  2. Candidates: one query per content kind, run concurrently, each
                 capped at its share of the page (7/2/1 tenths) and
                 annotated with like/comment/bookmark counts and the
                 viewer's own like/bookmark flags
  3. Merge:      newest first; equal timestamps keep snippet, doc, bug order
  4. Paginate:   skip/take applied to the merged list
  5. Fallback:   an empty first page becomes the public snippet feed

Expired bugs are filtered here rather than trusting the hourly sweep.
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import datetime
from typing import Any, Optional

import structlog
from sqlalchemy import exists, func
from sqlalchemy.orm import sessionmaker
from sqlmodel import select

from app.models.base import utcnow
from app.models.content import Bug, ContentBase, Doc, Snippet
from app.models.interaction import Bookmark, Comment, Like
from app.models.user import User
from app.services.follows import get_following_ids
from app.services.notifications import author_info
from devhub_shared.schemas.common import CONTENT_KIND_ORDER, ContentKind
from devhub_shared.schemas.feed import FeedItem, FeedResponse

log = structlog.get_logger()

CONTENT_MODELS: dict[ContentKind, type[ContentBase]] = {
    ContentKind.SNIPPET: Snippet,
    ContentKind.DOC: Doc,
    ContentKind.BUG: Bug,
}

# Column on likes/bookmarks/comments/notifications pointing at each kind
REF_COLUMNS: dict[ContentKind, str] = {
    ContentKind.SNIPPET: "snippet_id",
    ContentKind.DOC: "doc_id",
    ContentKind.BUG: "bug_id",
}

# Candidate rows per kind, in tenths of the page size
FEED_SHARES: dict[ContentKind, int] = {
    ContentKind.SNIPPET: 7,
    ContentKind.DOC: 2,
    ContentKind.BUG: 1,
}


def feed_quotas(limit: int) -> dict[ContentKind, int]:
    """ceil(share * limit / 10) per kind, in integer arithmetic."""
    return {kind: -(-limit * share // 10) for kind, share in FEED_SHARES.items()}


def visibility_clause(kind: ContentKind, now: datetime) -> Any:
    if kind is ContentKind.SNIPPET:
        return Snippet.is_public == True  # noqa: E712
    if kind is ContentKind.DOC:
        return Doc.is_public == True  # noqa: E712
    if kind is ContentKind.BUG:
        return Bug.expires_at > now
    raise ValueError(f"Unknown content kind: {kind}")


def annotated_select(kind: ContentKind, viewer_id: Optional[uuid.UUID] = None):
    """SELECT content, author and per-row counts; viewer flags when a viewer is given."""
    model = CONTENT_MODELS[kind]
    ref = REF_COLUMNS[kind]

    def _count(counted):
        return (
            select(func.count(counted.id))
            .where(getattr(counted, ref) == model.id)
            .correlate(model)
            .scalar_subquery()
        )

    columns = [
        model,
        User,
        _count(Like).label("likes_count"),
        _count(Comment).label("comments_count"),
        _count(Bookmark).label("bookmarks_count"),
    ]
    if viewer_id is not None:
        columns.append(
            exists()
            .where(getattr(Like, ref) == model.id, Like.user_id == viewer_id)
            .correlate(model)
            .label("is_liked")
        )
        columns.append(
            exists()
            .where(getattr(Bookmark, ref) == model.id, Bookmark.user_id == viewer_id)
            .correlate(model)
            .label("is_bookmarked")
        )
    return select(*columns).join(User, User.id == model.author_id)


def to_feed_item(
    kind: ContentKind,
    item: ContentBase,
    author: User,
    *,
    likes_count: int = 0,
    comments_count: int = 0,
    bookmarks_count: int = 0,
    is_liked: Optional[bool] = None,
    is_bookmarked: Optional[bool] = None,
) -> FeedItem:
    """Build the tagged feed variant. Viewer flags stay unset when not given."""
    fields: dict[str, Any] = {
        "id": item.id,
        "type": kind,
        "title": item.title,
        "description": item.description,
        "content": item.content,
        "tags": list(item.tags or []),
        "author_id": item.author_id,
        "author": author_info(author),
        "created_at": item.created_at,
        "updated_at": item.updated_at,
        "likes_count": likes_count,
        "comments_count": comments_count,
        "bookmarks_count": bookmarks_count,
    }
    if is_liked is not None:
        fields["is_liked"] = bool(is_liked)
    if is_bookmarked is not None:
        fields["is_bookmarked"] = bool(is_bookmarked)

    if kind is ContentKind.SNIPPET:
        fields.update(language=item.language, is_public=item.is_public)
    elif kind is ContentKind.DOC:
        fields.update(cover_image=item.cover_image, is_public=item.is_public)
    elif kind is ContentKind.BUG:
        fields.update(severity=item.severity, status=item.status, expires_at=item.expires_at)
    else:
        raise ValueError(f"Unknown content kind: {kind}")

    return FeedItem(**fields)


def row_to_item(kind: ContentKind, row, personalized: bool) -> FeedItem:
    return to_feed_item(
        kind,
        row[0],
        row[1],
        likes_count=row.likes_count,
        comments_count=row.comments_count,
        bookmarks_count=row.bookmarks_count,
        is_liked=row.is_liked if personalized else None,
        is_bookmarked=row.is_bookmarked if personalized else None,
    )


async def _fetch_candidates(
    session_factory: sessionmaker,
    kind: ContentKind,
    author_ids: list[uuid.UUID],
    viewer_id: uuid.UUID,
    take: int,
    now: datetime,
) -> list[FeedItem]:
    model = CONTENT_MODELS[kind]
    stmt = (
        annotated_select(kind, viewer_id)
        .where(model.author_id.in_(author_ids), visibility_clause(kind, now))
        .order_by(model.created_at.desc())
        .limit(take)
    )
    async with session_factory() as session:
        result = await session.execute(stmt)
        rows = result.all()
    return [row_to_item(kind, row, personalized=True) for row in rows]


def merge_feed(batches: dict[ContentKind, list[FeedItem]]) -> list[FeedItem]:
    """Concatenate in kind order and sort newest first (stable)."""
    combined: list[FeedItem] = []
    for kind in CONTENT_KIND_ORDER:
        combined.extend(batches.get(kind, []))
    return sorted(combined, key=lambda item: item.created_at, reverse=True)


async def get_feed(
    session_factory: sessionmaker,
    viewer_id: uuid.UUID,
    page: int,
    limit: int,
    *,
    now: Optional[datetime] = None,
) -> FeedResponse:
    """Personalized feed for ``viewer_id``; falls back to the public feed on an empty first page."""
    now = now or utcnow()
    skip = (page - 1) * limit

    async with session_factory() as session:
        following_ids = await get_following_ids(session, viewer_id)
    audience = list({*following_ids, viewer_id})

    quotas = feed_quotas(limit)
    results = await asyncio.gather(
        *(
            _fetch_candidates(session_factory, kind, audience, viewer_id, quotas[kind], now)
            for kind in CONTENT_KIND_ORDER
        ),
        return_exceptions=True,
    )
    # No partial feeds: any failed kind fails the whole request
    for kind, result in zip(CONTENT_KIND_ORDER, results):
        if isinstance(result, BaseException):
            log.error(
                "feed.subquery_failed",
                viewer_id=str(viewer_id),
                kind=kind.value,
                error=type(result).__name__,
            )
            raise result

    merged = merge_feed(dict(zip(CONTENT_KIND_ORDER, results)))

    if not merged and page == 1:
        log.info("feed.fallback_public", viewer_id=str(viewer_id), following=len(following_ids))
        return await get_public_feed(session_factory, page, limit)

    log.debug(
        "feed.merged",
        viewer_id=str(viewer_id),
        candidates={kind.value: len(batch) for kind, batch in zip(CONTENT_KIND_ORDER, results)},
        total=len(merged),
    )
    return FeedResponse(
        data=merged[skip:skip + limit],
        total=len(merged),
        page=page,
        has_more=len(merged) > skip + limit,
    )


async def get_public_feed(
    session_factory: sessionmaker,
    page: int,
    limit: int,
) -> FeedResponse:
    """
    Most recent public snippets system-wide, without viewer flags.

    ``has_more`` is true whenever the page is full, so a client may see one
    empty page at the end.
    """
    skip = (page - 1) * limit
    stmt = (
        annotated_select(ContentKind.SNIPPET)
        .where(Snippet.is_public == True)  # noqa: E712
        .order_by(Snippet.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    async with session_factory() as session:
        result = await session.execute(stmt)
        rows = result.all()

    items = [row_to_item(ContentKind.SNIPPET, row, personalized=False) for row in rows]
    return FeedResponse(
        data=items,
        total=len(items),
        page=page,
        has_more=len(items) == limit,
    )
