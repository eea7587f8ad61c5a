"""Notification model. Only the ``read`` flag is ever updated."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Notification(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "notifications"
    __table_args__ = (
        sa.Index("ix_notifications_recipient_read", "recipient_id", "read"),
    )

    type: str = Field(nullable=False)  # LIKE | COMMENT | FOLLOW | REPLY | BUG_STATUS_UPDATE
    recipient_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)
    sender_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False)
    read: bool = Field(default=False, nullable=False)
    snippet_id: Optional[uuid.UUID] = Field(default=None, foreign_key="snippets.id", ondelete="CASCADE")
    doc_id: Optional[uuid.UUID] = Field(default=None, foreign_key="docs.id", ondelete="CASCADE")
    bug_id: Optional[uuid.UUID] = Field(default=None, foreign_key="bugs.id", ondelete="CASCADE")
    comment_id: Optional[uuid.UUID] = Field(default=None, foreign_key="comments.id", ondelete="CASCADE")
