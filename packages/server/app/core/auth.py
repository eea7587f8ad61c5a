"""
Session authentication.

Identity exchange (OAuth) happens upstream; this module only verifies the
bearer JWT it produced and resolves the viewer:
- JWT encode/decode (PyJWT)
- Revocation list in Redis, checked on every request
- FastAPI dependency resolving the authenticated viewer
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.database import get_session
from app.core.redis import get_redis
from app.models.user import User

log = structlog.get_logger()
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)

REVOKED_KEY_PREFIX = "devhub:jwt:revoked:"


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed JWT. Returns (token, jti)."""
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# Revocation (Redis)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, ttl_seconds: int | None = None) -> None:
    """Add a JWT ID to the revocation list until the token would have expired anyway."""
    redis = await get_redis()
    ttl = ttl_seconds or settings.jwt_expire_minutes * 60
    await redis.setex(f"{REVOKED_KEY_PREFIX}{jti}", ttl, "1")


async def is_jwt_revoked(jti: str) -> bool:
    redis = await get_redis()
    return await redis.exists(f"{REVOKED_KEY_PREFIX}{jti}") > 0


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

class AuthenticatedUser:
    """Container for the authenticated viewer and the session token id."""

    def __init__(self, user: User, jti: str | None = None):
        self.user = user
        self.user_id = user.id
        self.jti = jti


async def authenticate_token(token: str, session: AsyncSession) -> AuthenticatedUser:
    """Resolve a raw bearer token to a user, or raise 401."""
    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        raise HTTPException(status_code=401, detail="Session has been revoked")

    try:
        user_id = uuid.UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Token without subject")

    user = await session.get(User, user_id)
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    return AuthenticatedUser(user=user, jti=jti)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_session),
) -> AuthenticatedUser:
    """Main authentication dependency."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    auth = await authenticate_token(credentials.credentials, session)
    request.state.auth = auth
    return auth
