"""Expired session/ticket sweep.

Purely advisory: validity is always decided by ``expires_at`` at read time,
so this only keeps the tables small.
"""

import logging

from arq import cron

from miniapp_sso.database import async_session_maker
from miniapp_sso.repositories.sso_repository import SsoRepository
from miniapp_sso.workers.settings import get_redis_settings

logger = logging.getLogger(__name__)


async def sweep_expired(ctx: dict) -> dict[str, int]:
    async with async_session_maker() as db:
        try:
            repository = SsoRepository(db)
            sessions = await repository.delete_expired_sessions()
            tickets = await repository.delete_expired_tickets()
            await db.commit()
        except Exception:
            logger.exception("Expired session/ticket sweep failed")
            await db.rollback()
            raise

    logger.info(f"Swept {sessions} expired sessions and {tickets} expired tickets")
    return {"sessions": sessions, "tickets": tickets}


class WorkerSettings:
    """arq worker settings for maintenance jobs."""

    functions = [sweep_expired]

    cron_jobs = [
        # Every 10 minutes
        cron(sweep_expired, minute={0, 10, 20, 30, 40, 50}),
    ]

    redis_settings = get_redis_settings()
