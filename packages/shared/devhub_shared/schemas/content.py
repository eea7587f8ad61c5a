"""Content-related Pydantic schemas: snippets, docs, bugs and the interactions on them."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4, field_validator

from .common import AuthorInfo, BugSeverity, BugStatus, ContentKind

MAX_TAGS = 10
MAX_TAG_LENGTH = 50


def _clean_tags(tags: list[str]) -> list[str]:
    cleaned = [t.strip().lower() for t in tags]
    return [t for t in cleaned if 0 < len(t) <= MAX_TAG_LENGTH][:MAX_TAGS]


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

class ContentCreateBase(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    content: str = Field(min_length=1)
    tags: List[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        return _clean_tags(v)


class SnippetCreate(ContentCreateBase):
    language: str = Field(min_length=1)
    is_public: bool = True


class DocCreate(ContentCreateBase):
    cover_image: Optional[str] = None
    is_public: bool = True


class BugCreate(ContentCreateBase):
    description: str = Field(min_length=1, max_length=500)
    severity: BugSeverity = BugSeverity.MEDIUM


class BugStatusUpdate(BaseModel):
    """Request body for PATCH /bugs/{bugId}/status."""
    status: BugStatus


# ---------------------------------------------------------------------------
# Interactions
# ---------------------------------------------------------------------------

class ContentRef(BaseModel):
    """Points at one snippet, doc or bug."""
    content_type: ContentKind
    content_id: UUID4


class LikeToggleResponse(BaseModel):
    liked: bool
    likes_count: int


class BookmarkToggleResponse(BaseModel):
    bookmarked: bool
    bookmarks_count: int


class CommentCreate(ContentRef):
    content: str = Field(min_length=1, max_length=2000)
    parent_id: Optional[UUID4] = None


class CommentRead(BaseModel):
    id: UUID4
    content: str
    author: AuthorInfo
    parent_id: Optional[UUID4] = None
    snippet_id: Optional[UUID4] = None
    doc_id: Optional[UUID4] = None
    bug_id: Optional[UUID4] = None
    created_at: datetime


class FollowToggleResponse(BaseModel):
    following: bool
    followers_count: int
