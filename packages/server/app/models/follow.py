"""Follow edge (follower -> following)."""

import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Follow(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "follows"
    __table_args__ = (
        sa.UniqueConstraint("follower_id", "following_id", name="follows_follower_following_key"),
    )

    follower_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)
    following_id: uuid.UUID = Field(foreign_key="users.id", ondelete="CASCADE", nullable=False, index=True)
