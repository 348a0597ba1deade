from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from miniapp_sso.models.session import MiniAppSession
from miniapp_sso.models.ticket import SsoTicket


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SsoRepository:
    """Persistence for mini-app sessions and the ticket ledger.

    Expiry is always compared in SQL against the caller's clock, so an
    expired row that has not been swept yet is never returned as valid.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_session(
        self,
        user_id: str,
        app_id: str,
        session_nonce: str,
        app_origin: str,
        expires_at: datetime,
    ) -> MiniAppSession:
        session = MiniAppSession(
            user_id=user_id,
            app_id=app_id,
            session_nonce=session_nonce,
            app_origin=app_origin,
            expires_at=expires_at,
        )
        self.db.add(session)
        await self.db.flush()
        return session

    async def get_valid_session(self, session_nonce: str) -> Optional[MiniAppSession]:
        result = await self.db.execute(
            select(MiniAppSession).where(
                MiniAppSession.session_nonce == session_nonce,
                MiniAppSession.expires_at > utcnow(),
            )
        )
        return result.scalar_one_or_none()

    async def create_ticket(
        self, jti: str, user_id: str, app_id: str, expires_at: datetime
    ) -> SsoTicket:
        ticket = SsoTicket(
            jti=jti,
            user_id=user_id,
            app_id=app_id,
            used=False,
            expires_at=expires_at,
        )
        self.db.add(ticket)
        await self.db.flush()
        return ticket

    async def get_ticket(self, jti: str) -> Optional[SsoTicket]:
        result = await self.db.execute(
            select(SsoTicket)
            .where(SsoTicket.jti == jti)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def try_mark_used(self, jti: str) -> bool:
        """Flip ``used`` false -> true for an unexpired ledger entry.

        A single conditional UPDATE; the database serializes competing
        writers, so across any number of processes at most one caller ever
        sees True for a given jti. Commits immediately so the flip is durable
        before the verdict leaves the process.
        """
        now = utcnow()
        result = await self.db.execute(
            update(SsoTicket)
            .where(
                SsoTicket.jti == jti,
                SsoTicket.used.is_(False),
                SsoTicket.expires_at > now,
            )
            .values(used=True, used_at=now)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        return result.rowcount == 1

    async def delete_expired_sessions(self) -> int:
        result = await self.db.execute(
            delete(MiniAppSession).where(MiniAppSession.expires_at <= utcnow())
        )
        return result.rowcount or 0

    async def delete_expired_tickets(self) -> int:
        result = await self.db.execute(
            delete(SsoTicket).where(SsoTicket.expires_at <= utcnow())
        )
        return result.rowcount or 0
