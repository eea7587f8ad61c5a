# SQLModel definitions: imported here so metadata is populated before create_all.
from .base import UUIDMixin, CreatedAtMixin, TimestampMixin  # noqa: F401
from .user import User  # noqa: F401
from .follow import Follow  # noqa: F401
from .content import Snippet, Doc, Bug  # noqa: F401
from .interaction import Like, Bookmark, Comment  # noqa: F401
from .notification import Notification  # noqa: F401
