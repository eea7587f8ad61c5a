"""
ARQ background task: delete bug reports whose 24h lifetime has passed.

Scheduled hourly at minute 0. Readers filter on ``expires_at`` themselves,
so a missed or late run only delays storage reclamation.

Run with: arq app.tasks.bug_cleanup.WorkerSettings
"""

from __future__ import annotations

import structlog
from arq import cron
from arq.connections import RedisSettings

from app.core.config import get_settings
from app.core.database import get_session_context
from app.core.logging import configure_logging
from app.services.content import delete_expired_bugs

log = structlog.get_logger()
settings = get_settings()


async def sweep_expired_bugs(ctx: dict) -> int:
    """Delete expired bugs with their likes, bookmarks, comments and notifications.

    Returns the number of bugs deleted.
    """
    async with get_session_context() as session:
        count = await delete_expired_bugs(session)

    if count:
        log.info("bug_cleanup.swept", count=count)
    return count


async def startup(ctx: dict) -> None:
    configure_logging(settings.log_level, settings.log_format)
    log.info("bug_cleanup.worker_started")


# ARQ worker settings
class WorkerSettings:
    """ARQ worker configuration."""

    functions = [sweep_expired_bugs]
    cron_jobs = [
        cron(sweep_expired_bugs, minute=0, run_at_startup=True),
    ]
    on_startup = startup
    redis_settings = RedisSettings.from_dsn(settings.redis_url)
