from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from miniapp_sso.api.dependencies import get_ticket_introspector, get_ticket_issuer
from miniapp_sso.database import get_db
from miniapp_sso.schemas.sso import (
    IntrospectRequest,
    IntrospectResponse,
    TicketRequest,
    TicketResponse,
)
from miniapp_sso.services.ticket_service import TicketIntrospector, TicketIssuer
from miniapp_sso.utils.auth import CurrentUser

router = APIRouter(prefix="/sso", tags=["SSO"])


@router.post("/ticket", response_model=TicketResponse)
async def request_ticket(
    request: TicketRequest,
    current_user: CurrentUser,
    db: Annotated[AsyncSession, Depends(get_db)],
    issuer: Annotated[TicketIssuer, Depends(get_ticket_issuer)],
) -> TicketResponse:
    issued = await issuer.request_ticket(current_user.id, request.app_id, request.session_nonce)
    # Ledger entry must be durable before the ticket leaves the host
    await db.commit()

    return TicketResponse(ticket=issued.ticket, expires_in=issued.expires_in)


@router.post("/introspect", response_model=IntrospectResponse, response_model_exclude_none=True)
async def introspect_ticket(
    http_request: Request,
    introspector: Annotated[TicketIntrospector, Depends(get_ticket_introspector)],
) -> IntrospectResponse:
    """
    Redeem a ticket for a verified identity. Called server-to-server by the
    mini-app backend; no host authentication.

    Always answers 200, whatever the body. ``valid`` carries the verdict.
    """
    request = await _read_introspect_request(http_request)
    if request is None or not request.ticket or not request.app_id:
        return IntrospectResponse(valid=False, reason="ticket and appId are required")

    result = await introspector.introspect(request.ticket, request.app_id)
    if not result.valid:
        return IntrospectResponse(valid=False, reason=result.reason)

    return IntrospectResponse(
        valid=True,
        sub=result.sub,
        scopes=result.scopes,
        app_origin=result.app_origin,
    )


async def _read_introspect_request(http_request: Request) -> Optional[IntrospectRequest]:
    try:
        payload = await http_request.json()
        return IntrospectRequest.model_validate(payload, strict=True)
    except (ValueError, ValidationError):
        return None
