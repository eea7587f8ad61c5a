"""Content models: snippets, docs and time-limited bug reports."""

from datetime import datetime
from typing import List, Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class ContentBase(UUIDMixin, TimestampMixin, SQLModel):
    """Columns every content kind shares."""

    title: str = Field(nullable=False)
    description: Optional[str] = None
    content: str = Field(nullable=False)
    tags: List[str] = Field(default_factory=list, sa_type=sa.JSON)
    author_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)


class Snippet(ContentBase, table=True):
    __tablename__ = "snippets"

    language: str = Field(nullable=False)
    is_public: bool = Field(default=True, nullable=False)


class Doc(ContentBase, table=True):
    __tablename__ = "docs"

    cover_image: Optional[str] = None
    is_public: bool = Field(default=True, nullable=False)


class Bug(ContentBase, table=True):
    __tablename__ = "bugs"

    severity: str = Field(nullable=False, default="MEDIUM")  # LOW | MEDIUM | HIGH | CRITICAL
    status: str = Field(nullable=False, default="OPEN")  # OPEN | IN_PROGRESS | RESOLVED | CLOSED
    expires_at: datetime = Field(nullable=False, index=True, sa_type=sa.DateTime())
