"""Feed schemas shared between the server and frontend codegen."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4

from .common import AuthorInfo, ContentKind


class FeedItem(BaseModel):
    """One entry of a merged feed.

    ``type`` tags the variant; the kind-specific fields are only set for the
    matching kind. ``is_liked`` / ``is_bookmarked`` are left unset on
    non-personalized listings so they drop out of the response entirely.
    """
    id: UUID4
    type: ContentKind
    title: str
    description: Optional[str] = None
    content: str
    tags: List[str] = Field(default_factory=list)
    author_id: UUID4
    author: AuthorInfo
    created_at: datetime
    updated_at: datetime

    likes_count: int = 0
    comments_count: int = 0
    bookmarks_count: int = 0
    is_liked: Optional[bool] = None
    is_bookmarked: Optional[bool] = None

    # snippet
    language: Optional[str] = None
    # snippet | doc
    is_public: Optional[bool] = None
    # doc
    cover_image: Optional[str] = None
    # bug
    severity: Optional[str] = None
    status: Optional[str] = None
    expires_at: Optional[datetime] = None


class FeedResponse(BaseModel):
    data: List[FeedItem]
    total: int
    page: int
    has_more: bool
