from enum import Enum
from typing import Optional
from pydantic import BaseModel, UUID4

class ContentKind(str, Enum):
    SNIPPET = "snippet"
    DOC = "doc"
    BUG = "bug"

# Merge order for items with identical timestamps
CONTENT_KIND_ORDER: list["ContentKind"] = [
    ContentKind.SNIPPET,
    ContentKind.DOC,
    ContentKind.BUG,
]

class BugSeverity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

class BugStatus(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"

class NotificationType(str, Enum):
    LIKE = "LIKE"
    COMMENT = "COMMENT"
    FOLLOW = "FOLLOW"
    REPLY = "REPLY"
    BUG_STATUS_UPDATE = "BUG_STATUS_UPDATE"

class AuthorInfo(BaseModel):
    id: UUID4
    username: str
    name: Optional[str] = None
    avatar: Optional[str] = None
