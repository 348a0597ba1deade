import logging
import time
import uuid
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from miniapp_sso.api.dependencies import get_ticket_signer
from miniapp_sso.database import get_db
from miniapp_sso.models import SsoTicket
from miniapp_sso.utils.signing import TicketSigner

logger = logging.getLogger(__name__)

router = APIRouter()

SELF_CHECK_AUDIENCE = "health"


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "healthy"}


@router.get("/health/ready")
async def readiness_check(
    response: Response,
    db: Annotated[AsyncSession, Depends(get_db)],
    signer: Annotated[TicketSigner, Depends(get_ticket_signer)],
) -> dict[str, Any]:
    """
    Ready when the ticket ledger is reachable and the signer can round-trip a
    ticket. Answers 503 otherwise so load balancers stop routing here.
    """
    checks = {
        "ledger": await _check_ledger(db),
        "signer": _check_signer(signer),
    }
    ready = all(v == "healthy" for v in checks.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return {"status": "healthy" if ready else "unhealthy", "checks": checks}


async def _check_ledger(db: AsyncSession) -> str:
    try:
        await db.execute(select(SsoTicket.jti).limit(1))
    except Exception as e:
        logger.warning("Readiness: ticket ledger unreachable: %s", e)
        return f"unhealthy: {e}"
    return "healthy"


def _check_signer(signer: TicketSigner) -> str:
    now = int(time.time())
    jti = str(uuid.uuid4())
    try:
        token = signer.sign(
            {
                "iss": signer.issuer,
                "sub": "readiness",
                "aud": SELF_CHECK_AUDIENCE,
                "iat": now,
                "exp": now + 5,
                "jti": jti,
            }
        )
        claims = signer.verify(token, audience=SELF_CHECK_AUDIENCE)
    except Exception as e:
        logger.warning("Readiness: ticket signer failed: %s", e)
        return f"unhealthy: {e}"
    return "healthy" if claims["jti"] == jti else "unhealthy: claims mismatch"
