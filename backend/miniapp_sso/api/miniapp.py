from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from miniapp_sso.api.dependencies import get_session_registry
from miniapp_sso.database import get_db
from miniapp_sso.schemas.sso import SessionStartRequest, SessionStartResponse
from miniapp_sso.services.session_service import SessionRegistry
from miniapp_sso.utils.auth import CurrentUser

router = APIRouter(prefix="/miniapp", tags=["Mini Apps"])


@router.post("/session/start", response_model=SessionStartResponse)
async def start_session(
    request: SessionStartRequest,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    sessions: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> SessionStartResponse:
    started = await sessions.start_session(current_user.id, request.app_id)
    await db.commit()

    return SessionStartResponse(
        app_id=started.app_id,
        session_nonce=started.session_nonce,
        origin=started.origin,
        start_url=started.start_url,
        allowed_post_message_origins=started.allowed_post_message_origins,
        expires_at=started.expires_at,
    )
