from datetime import timedelta
from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from miniapp_sso.config import get_settings
from miniapp_sso.database import get_db
from miniapp_sso.repositories.sso_repository import SsoRepository
from miniapp_sso.services.app_registry import SqlAppRegistry
from miniapp_sso.services.session_service import SessionRegistry
from miniapp_sso.services.ticket_service import TicketIntrospector, TicketIssuer
from miniapp_sso.utils.signing import TicketSigner


@lru_cache
def get_ticket_signer() -> TicketSigner:
    return TicketSigner.from_settings(get_settings())


def get_session_registry(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> SessionRegistry:
    settings = get_settings()
    return SessionRegistry(
        SsoRepository(db),
        SqlAppRegistry(db),
        session_ttl=timedelta(minutes=settings.session_ttl_minutes),
    )


def get_ticket_issuer(
    db: Annotated[AsyncSession, Depends(get_db)],
    signer: Annotated[TicketSigner, Depends(get_ticket_signer)],
) -> TicketIssuer:
    settings = get_settings()
    repository = SsoRepository(db)
    apps = SqlAppRegistry(db)
    return TicketIssuer(
        repository,
        apps,
        SessionRegistry(repository, apps),
        signer,
        ttl_seconds=settings.ticket_ttl_seconds,
    )


def get_ticket_introspector(
    db: Annotated[AsyncSession, Depends(get_db)],
    signer: Annotated[TicketSigner, Depends(get_ticket_signer)],
) -> TicketIntrospector:
    return TicketIntrospector(SsoRepository(db), signer)
