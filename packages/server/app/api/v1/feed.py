"""
Feed endpoints.

GET /api/v1/feed          Personalized feed (followed authors + own content)
GET /api/v1/feed/public   Public snippets, newest first
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import sessionmaker

from app.core.auth import AuthenticatedUser, get_current_user
from app.core.config import get_settings
from app.core.database import get_session_factory
from app.services.feed import get_feed, get_public_feed
from devhub_shared.schemas.feed import FeedResponse

settings = get_settings()
router = APIRouter()


@router.get("", response_model=FeedResponse, response_model_exclude_unset=True)
async def get_feed_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.feed_default_limit, ge=1, le=settings.feed_max_limit),
    auth: AuthenticatedUser = Depends(get_current_user),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    """Feed for the authenticated viewer; an empty first page falls back to public snippets."""
    return await get_feed(session_factory, auth.user_id, page, limit)


@router.get("/public", response_model=FeedResponse, response_model_exclude_unset=True)
async def get_public_feed_endpoint(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.feed_default_limit, ge=1, le=settings.feed_max_limit),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    return await get_public_feed(session_factory, page, limit)
