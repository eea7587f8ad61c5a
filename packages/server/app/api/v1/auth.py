"""
Session endpoints.

Sign-in happens through the upstream identity provider, which hands the
client a bearer JWT. This API only inspects and revokes it.

GET  /api/v1/auth/me       The authenticated viewer
POST /api/v1/auth/logout   Revoke the current token
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends

from app.core.auth import AuthenticatedUser, get_current_user, revoke_jwt
from app.services.notifications import author_info
from devhub_shared.schemas.common import AuthorInfo

log = structlog.get_logger()
router = APIRouter()


@router.get("/me", response_model=AuthorInfo)
async def me(auth: AuthenticatedUser = Depends(get_current_user)):
    return author_info(auth.user)


@router.post("/logout")
async def logout(auth: AuthenticatedUser = Depends(get_current_user)):
    """Invalidate the current session token."""
    if auth.jti:
        await revoke_jwt(auth.jti)
    log.info("auth.logout", user_id=str(auth.user_id))
    return {"message": "Logged out"}
