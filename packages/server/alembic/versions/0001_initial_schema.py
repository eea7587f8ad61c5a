"""Initial schema: users, follows, content kinds, interactions, notifications.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2025-07-22 11:00:00.000000
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

CONTENT_TABLES = ["snippets", "docs", "bugs"]


def _id() -> sa.Column:
    return sa.Column("id", sa.Uuid(), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(), nullable=False)


def _user_fk(name: str, nullable: bool = False) -> sa.Column:
    return sa.Column(name, sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=nullable)


def _content_refs() -> list[sa.Column]:
    """snippet_id / doc_id / bug_id, exactly one of which is set per row."""
    return [
        sa.Column("snippet_id", sa.Uuid(), sa.ForeignKey("snippets.id", ondelete="CASCADE"), nullable=True),
        sa.Column("doc_id", sa.Uuid(), sa.ForeignKey("docs.id", ondelete="CASCADE"), nullable=True),
        sa.Column("bug_id", sa.Uuid(), sa.ForeignKey("bugs.id", ondelete="CASCADE"), nullable=True),
    ]


def _content_columns() -> list[sa.Column]:
    return [
        _id(),
        _created_at(),
        _updated_at(),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.String(), nullable=True),
        sa.Column("content", sa.String(), nullable=False),
        sa.Column("tags", sa.JSON(), nullable=False),
        _user_fk("author_id"),
    ]


def _index_refs(table: str) -> None:
    for column in ("snippet_id", "doc_id", "bug_id"):
        op.create_index(f"ix_{table}_{column}", table, [column])


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # users
    op.create_table(
        "users",
        _id(),
        _created_at(),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True, unique=True),
        sa.Column("name", sa.String(), nullable=True),
        sa.Column("avatar", sa.String(), nullable=True),
        sa.Column("bio", sa.String(), nullable=True),
    )
    op.create_index("ix_users_username", "users", ["username"], unique=True)

    # follows
    op.create_table(
        "follows",
        _id(),
        _created_at(),
        _user_fk("follower_id"),
        _user_fk("following_id"),
        sa.UniqueConstraint("follower_id", "following_id", name="follows_follower_following_key"),
    )
    op.create_index("ix_follows_follower_id", "follows", ["follower_id"])
    op.create_index("ix_follows_following_id", "follows", ["following_id"])

    # content kinds
    op.create_table(
        "snippets",
        *_content_columns(),
        sa.Column("language", sa.String(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
    )
    op.create_table(
        "docs",
        *_content_columns(),
        sa.Column("cover_image", sa.String(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False),
    )
    op.create_table(
        "bugs",
        *_content_columns(),
        sa.Column("severity", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
    )
    for table in CONTENT_TABLES:
        op.create_index(f"ix_{table}_author_id", table, ["author_id"])
        op.create_index(f"ix_{table}_created_at", table, ["created_at"])
    op.create_index("ix_bugs_expires_at", "bugs", ["expires_at"])

    # interactions
    for table in ("likes", "bookmarks"):
        op.create_table(
            table,
            _id(),
            _created_at(),
            *_content_refs(),
            _user_fk("user_id"),
            sa.UniqueConstraint("user_id", "snippet_id", name=f"{table}_user_snippet_key"),
            sa.UniqueConstraint("user_id", "doc_id", name=f"{table}_user_doc_key"),
            sa.UniqueConstraint("user_id", "bug_id", name=f"{table}_user_bug_key"),
        )
        op.create_index(f"ix_{table}_user_id", table, ["user_id"])
        _index_refs(table)

    op.create_table(
        "comments",
        _id(),
        _created_at(),
        _updated_at(),
        *_content_refs(),
        sa.Column("content", sa.String(), nullable=False),
        _user_fk("author_id"),
        sa.Column("parent_id", sa.Uuid(), sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True),
    )
    op.create_index("ix_comments_author_id", "comments", ["author_id"])
    _index_refs("comments")

    # notifications
    op.create_table(
        "notifications",
        _id(),
        _created_at(),
        sa.Column("type", sa.String(), nullable=False),
        _user_fk("recipient_id"),
        _user_fk("sender_id"),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_content_refs(),
        sa.Column("comment_id", sa.Uuid(), sa.ForeignKey("comments.id", ondelete="CASCADE"), nullable=True),
    )
    op.create_index("ix_notifications_recipient_id", "notifications", ["recipient_id"])
    op.create_index("ix_notifications_recipient_read", "notifications", ["recipient_id", "read"])


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Reverse dependency order
    op.drop_table("notifications")
    op.drop_table("comments")
    op.drop_table("bookmarks")
    op.drop_table("likes")
    for table in reversed(CONTENT_TABLES):
        op.drop_table(table)
    op.drop_table("follows")
    op.drop_table("users")
