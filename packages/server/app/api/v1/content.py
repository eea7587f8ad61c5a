"""
Content endpoints: snippets, docs and bugs.

GET   /api/v1/snippets             Public snippets, newest first
GET   /api/v1/snippets/{id}        One snippet (private ones only for their author)
GET   /api/v1/docs                 Public docs, newest first
GET   /api/v1/docs/{id}            One doc (private ones only for their author)
GET   /api/v1/bugs                 Bugs that have not expired, filterable by severity/status
GET   /api/v1/bugs/{id}            One bug; 410 once expired
POST  /api/v1/snippets             Create a snippet (public ones fan out as new-snippet)
POST  /api/v1/docs                 Create a doc (public ones fan out as new-doc)
POST  /api/v1/bugs                 Create a bug report, live for 24h (fans out as new-bug)
PATCH /api/v1/bugs/{bug_id}/status Author-only status change, pushed to the bug's room

Fan-out and notifications run as background tasks after the write commits.
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import sessionmaker

from app.core.auth import AuthenticatedUser, get_current_user
from app.core.config import get_settings
from app.core.database import get_session, get_session_factory
from app.core.realtime import SubscriptionRegistry, get_registry
from app.services.content import (
    ContentCreate,
    create_content,
    get_content_detail,
    get_feed_item,
    list_content,
    new_content_event,
    update_bug_status,
)
from app.services.fanout import publish_to_followers, publish_to_room
from app.services.notifications import dispatch_notification
from devhub_shared.schemas.common import BugSeverity, BugStatus, ContentKind, NotificationType
from devhub_shared.schemas.content import BugCreate, BugStatusUpdate, DocCreate, SnippetCreate
from devhub_shared.schemas.feed import FeedItem, FeedResponse
from devhub_shared.schemas.notifications import NotificationCreate

BUG_STATUS_EVENT = "bug-status-updated"

settings = get_settings()
router = APIRouter()


async def _create_and_fan_out(
    kind: ContentKind,
    data: ContentCreate,
    auth: AuthenticatedUser,
    background_tasks: BackgroundTasks,
    session: AsyncSession,
    session_factory: sessionmaker,
    registry: SubscriptionRegistry,
) -> FeedItem:
    item, feed_item = await create_content(session, kind, auth.user, data)
    event_name = new_content_event(kind, item)
    if event_name:
        background_tasks.add_task(
            publish_to_followers,
            registry,
            session_factory,
            auth.user_id,
            event_name,
            feed_item.model_dump(mode="json"),
        )
    return feed_item


@router.post("/snippets", response_model=FeedItem, status_code=201)
async def create_snippet_endpoint(
    body: SnippetCreate,
    background_tasks: BackgroundTasks,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    session_factory: sessionmaker = Depends(get_session_factory),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    return await _create_and_fan_out(
        ContentKind.SNIPPET, body, auth, background_tasks, session, session_factory, registry
    )


@router.post("/docs", response_model=FeedItem, status_code=201)
async def create_doc_endpoint(
    body: DocCreate,
    background_tasks: BackgroundTasks,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    session_factory: sessionmaker = Depends(get_session_factory),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    return await _create_and_fan_out(
        ContentKind.DOC, body, auth, background_tasks, session, session_factory, registry
    )


@router.post("/bugs", response_model=FeedItem, status_code=201)
async def create_bug_endpoint(
    body: BugCreate,
    background_tasks: BackgroundTasks,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    session_factory: sessionmaker = Depends(get_session_factory),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    return await _create_and_fan_out(
        ContentKind.BUG, body, auth, background_tasks, session, session_factory, registry
    )


@router.patch("/bugs/{bug_id}/status", response_model=FeedItem)
async def update_bug_status_endpoint(
    bug_id: uuid.UUID,
    body: BugStatusUpdate,
    background_tasks: BackgroundTasks,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
    session_factory: sessionmaker = Depends(get_session_factory),
    registry: SubscriptionRegistry = Depends(get_registry),
):
    """404 unknown bug, 410 expired bug, 403 for anyone but the author."""
    bug = await update_bug_status(session, bug_id, auth.user_id, body.status)
    feed_item = await get_feed_item(session, ContentKind.BUG, bug.id, auth.user_id)

    background_tasks.add_task(
        publish_to_room, registry, bug.id, BUG_STATUS_EVENT, feed_item.model_dump(mode="json")
    )
    if bug.author_id != auth.user_id:
        background_tasks.add_task(
            dispatch_notification,
            registry,
            session_factory,
            NotificationCreate(
                recipient_id=bug.author_id,
                sender_id=auth.user_id,
                type=NotificationType.BUG_STATUS_UPDATE,
                bug_id=bug.id,
            ),
        )
    return feed_item


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("/snippets", response_model=FeedResponse)
async def list_snippets_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.feed_default_limit, ge=1, le=settings.feed_max_limit),
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await list_content(session, ContentKind.SNIPPET, auth.user_id, page, limit)


@router.get("/docs", response_model=FeedResponse)
async def list_docs_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.feed_default_limit, ge=1, le=settings.feed_max_limit),
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await list_content(session, ContentKind.DOC, auth.user_id, page, limit)


@router.get("/bugs", response_model=FeedResponse)
async def list_bugs_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.feed_default_limit, ge=1, le=settings.feed_max_limit),
    severity: Optional[BugSeverity] = Query(None),
    status: Optional[BugStatus] = Query(None),
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """Active bugs only; expired ones disappear before the hourly sweep deletes them."""
    return await list_content(
        session, ContentKind.BUG, auth.user_id, page, limit, severity=severity, status=status
    )


@router.get("/snippets/{snippet_id}", response_model=FeedItem)
async def get_snippet_endpoint(
    snippet_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await get_content_detail(session, ContentKind.SNIPPET, snippet_id, auth.user_id)


@router.get("/docs/{doc_id}", response_model=FeedItem)
async def get_doc_endpoint(
    doc_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await get_content_detail(session, ContentKind.DOC, doc_id, auth.user_id)


@router.get("/bugs/{bug_id}", response_model=FeedItem)
async def get_bug_endpoint(
    bug_id: uuid.UUID,
    auth: AuthenticatedUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    return await get_content_detail(session, ContentKind.BUG, bug_id, auth.user_id)
