"""Likes, bookmarks and comments. Each row points at exactly one content item."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, TimestampMixin, UUIDMixin


class ContentRefMixin(SQLModel):
    snippet_id: Optional[uuid.UUID] = Field(default=None, foreign_key="snippets.id", ondelete="CASCADE", index=True)
    doc_id: Optional[uuid.UUID] = Field(default=None, foreign_key="docs.id", ondelete="CASCADE", index=True)
    bug_id: Optional[uuid.UUID] = Field(default=None, foreign_key="bugs.id", ondelete="CASCADE", index=True)


class Like(UUIDMixin, CreatedAtMixin, ContentRefMixin, SQLModel, table=True):
    __tablename__ = "likes"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "snippet_id", name="likes_user_snippet_key"),
        sa.UniqueConstraint("user_id", "doc_id", name="likes_user_doc_key"),
        sa.UniqueConstraint("user_id", "bug_id", name="likes_user_bug_key"),
    )

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)


class Bookmark(UUIDMixin, CreatedAtMixin, ContentRefMixin, SQLModel, table=True):
    __tablename__ = "bookmarks"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "snippet_id", name="bookmarks_user_snippet_key"),
        sa.UniqueConstraint("user_id", "doc_id", name="bookmarks_user_doc_key"),
        sa.UniqueConstraint("user_id", "bug_id", name="bookmarks_user_bug_key"),
    )

    user_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)


class Comment(UUIDMixin, TimestampMixin, ContentRefMixin, SQLModel, table=True):
    __tablename__ = "comments"

    content: str = Field(nullable=False)
    author_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)
    parent_id: Optional[uuid.UUID] = Field(default=None, foreign_key="comments.id", ondelete="CASCADE")
