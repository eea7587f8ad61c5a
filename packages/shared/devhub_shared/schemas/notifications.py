"""Notification schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, UUID4

from .common import AuthorInfo, NotificationType


class NotificationCreate(BaseModel):
    """Trigger data for a single notification."""
    recipient_id: UUID4
    sender_id: UUID4
    type: NotificationType
    snippet_id: Optional[UUID4] = None
    doc_id: Optional[UUID4] = None
    bug_id: Optional[UUID4] = None
    comment_id: Optional[UUID4] = None


class ContentSummary(BaseModel):
    id: UUID4
    title: str


class CommentSummary(BaseModel):
    id: UUID4
    content: str


class NotificationRead(BaseModel):
    id: UUID4
    type: NotificationType
    recipient_id: UUID4
    sender_id: UUID4
    read: bool
    created_at: datetime
    sender: AuthorInfo
    snippet_id: Optional[UUID4] = None
    doc_id: Optional[UUID4] = None
    bug_id: Optional[UUID4] = None
    comment_id: Optional[UUID4] = None
    snippet: Optional[ContentSummary] = None
    doc: Optional[ContentSummary] = None
    bug: Optional[ContentSummary] = None
    comment: Optional[CommentSummary] = None


class NotificationListResponse(BaseModel):
    notifications: List[NotificationRead]
    total: int
    page: int
    limit: int


class MarkReadRequest(BaseModel):
    """Request body for POST /notifications/read. Omit ids to mark everything read."""
    notification_ids: Optional[List[UUID4]] = None


class MarkReadResponse(BaseModel):
    updated: int


class UnreadCountResponse(BaseModel):
    count: int
