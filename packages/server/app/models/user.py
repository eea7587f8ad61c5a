"""User model."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class User(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "users"

    username: str = Field(nullable=False, unique=True, index=True)
    email: Optional[str] = Field(default=None, unique=True)
    name: Optional[str] = None
    avatar: Optional[str] = None
    bio: Optional[str] = None
