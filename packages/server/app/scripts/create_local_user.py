"""
Script to create a local user and print a bearer token for it.

Sign-in normally goes through the upstream identity provider; this is the
shortcut for local development and manual websocket testing.

    python -m app.scripts.create_local_user --username alice
"""

import argparse
import asyncio

from sqlmodel import select

from app.core.auth import create_jwt
from app.core.database import async_session_factory, init_db
from app.models.user import User


async def create_user(username: str, email: str | None, name: str | None) -> None:
    await init_db()

    async with async_session_factory() as session:
        result = await session.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()

        if not user:
            user = User(username=username, email=email, name=name or username)
            session.add(user)
            await session.commit()
            print(f"Created user: {username} ({user.id})")
        else:
            print(f"User {username} already exists ({user.id}).")

    token, _ = create_jwt(user.id)
    print(f"Bearer token:\n{token}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local user and print a JWT.")
    parser.add_argument("--username", required=True, help="Unique username")
    parser.add_argument("--email", help="Optional email address")
    parser.add_argument("--name", help="Display name (defaults to the username)")

    args = parser.parse_args()

    asyncio.run(create_user(args.username, args.email, args.name))
