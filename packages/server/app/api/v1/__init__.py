"""
API v1 Router
"""

from fastapi import APIRouter
from . import auth, content, feed, follows, interactions, notifications, realtime

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
router.include_router(feed.router, prefix="/feed", tags=["Feed"])
router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
router.include_router(content.router, tags=["Content"])
router.include_router(interactions.router, tags=["Interactions"])
router.include_router(follows.router, prefix="/follows", tags=["Follows"])
router.include_router(realtime.router, tags=["Realtime"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/feed",
            "/feed/public",
            "/notifications",
            "/snippets",
            "/docs",
            "/bugs",
            "/bugs/{bug_id}",
            "/likes",
            "/bookmarks",
            "/comments",
            "/follows/{user_id}",
            "/auth/logout",
            "/ws",
        ],
    }
