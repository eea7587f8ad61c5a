"""
Shared fixtures: a throwaway SQLite store per test, an initialized
subscription registry, WebSocket doubles and an HTTP client wired to both.
"""

from __future__ import annotations

import json
import uuid
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel

import app.models  # noqa: F401
from app.core.auth import create_jwt
from app.core.database import get_session, get_session_factory
from app.core.realtime import SubscriptionRegistry
from app.main import app as fastapi_app
from app.models.user import User


@pytest.fixture
async def engine(tmp_path):
    # File-backed so each concurrent session gets its own connection
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'devhub.db'}",
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def registry():
    registry = SubscriptionRegistry()
    await registry.init()
    yield registry
    await registry.shutdown()


@pytest.fixture
def make_user(session_factory):
    async def _make(username: str | None = None, **kwargs) -> User:
        user = User(username=username or f"dev_{uuid.uuid4().hex[:8]}", **kwargs)
        async with session_factory() as session:
            session.add(user)
            await session.commit()
        return user

    return _make


@pytest.fixture
def make_ws():
    def _make():
        ws = AsyncMock(spec_set=["accept", "send_text", "close", "receive_text"])
        ws.accept = AsyncMock()
        ws.send_text = AsyncMock()
        ws.close = AsyncMock()
        return ws

    return _make


def sent_frames(ws) -> list[dict]:
    """Decoded frames a mocked websocket was sent, in order."""
    return [json.loads(call.args[0]) for call in ws.send_text.await_args_list]


@pytest.fixture
def frames():
    return sent_frames


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        token, _ = create_jwt(user.id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def redis_mock():
    redis = AsyncMock()
    redis.exists = AsyncMock(return_value=0)
    redis.setex = AsyncMock()
    return redis


@pytest.fixture
async def client(session_factory, registry, redis_mock):
    async def _get_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    fastapi_app.dependency_overrides[get_session] = _get_session
    fastapi_app.dependency_overrides[get_session_factory] = lambda: session_factory
    previous_registry = fastapi_app.state.registry
    fastapi_app.state.registry = registry

    with patch("app.core.auth.get_redis", AsyncMock(return_value=redis_mock)):
        async with AsyncClient(transport=ASGITransport(app=fastapi_app), base_url="http://test") as ac:
            yield ac

    fastapi_app.dependency_overrides.clear()
    fastapi_app.state.registry = previous_registry
