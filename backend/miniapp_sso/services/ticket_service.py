import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from miniapp_sso.models.app import AppStatus
from miniapp_sso.repositories.sso_repository import SsoRepository, utcnow
from miniapp_sso.services.app_registry import AppRegistry
from miniapp_sso.services.errors import (
    AlreadyUsed,
    AppNotActive,
    ConcurrencyConflict,
    Expired,
    InvalidSession,
    Malformed,
    MissingField,
    NotFound,
    SessionOriginMismatch,
    SsoError,
    TicketNotFound,
)
from miniapp_sso.services.session_service import SessionRegistry
from miniapp_sso.utils.signing import TicketExpiredError, TicketInvalidError, TicketSigner

logger = logging.getLogger(__name__)

TICKET_TTL_SECONDS = 60


@dataclass(frozen=True)
class IssuedTicket:
    ticket: str
    jti: str
    expires_in: int


@dataclass(frozen=True)
class IntrospectionResult:
    valid: bool
    reason: Optional[str] = None
    sub: Optional[str] = None
    scopes: list[str] = field(default_factory=list)
    app_origin: Optional[str] = None

    @classmethod
    def rejected(cls, error: SsoError) -> "IntrospectionResult":
        return cls(valid=False, reason=error.message)


class TicketIssuer:
    def __init__(
        self,
        repository: SsoRepository,
        apps: AppRegistry,
        sessions: SessionRegistry,
        signer: TicketSigner,
        ttl_seconds: int = TICKET_TTL_SECONDS,
    ):
        self.repository = repository
        self.apps = apps
        self.sessions = sessions
        self.signer = signer
        self.ttl_seconds = ttl_seconds

    async def request_ticket(
        self, user_id: str, app_id: str, session_nonce: Optional[str]
    ) -> IssuedTicket:
        """
        Mint a signed single-use ticket for an embedded mini-app.

        Only a live session started by the same user for the same app, at the
        app's current origin, can yield a ticket. The ledger row is written
        before the ticket is handed back.
        """
        if not session_nonce:
            raise MissingField("sessionNonce is required for iframe SSO")

        app = await self.apps.get_app(app_id)
        if app is None:
            raise NotFound("App not found")

        session = await self.sessions.validate_session(session_nonce)
        if session is None or session.user_id != user_id or session.app_id != app_id:
            logger.warning("Ticket request with invalid session for user %s, app %s", user_id, app_id)
            raise InvalidSession()

        if session.app_origin != app.origin:
            logger.warning("Ticket request for app %s after origin change", app_id)
            raise SessionOriginMismatch()

        if app.status != AppStatus.active.value:
            raise AppNotActive()

        now = int(utcnow().timestamp())
        exp = now + self.ttl_seconds
        jti = str(uuid.uuid4())
        claims = {
            "iss": self.signer.issuer,
            "sub": user_id,
            "aud": app_id,
            "iat": now,
            "exp": exp,
            "jti": jti,
            "scopes": list(app.scopes),
            "appOrigin": app.origin or "",
        }
        ticket = self.signer.sign(claims)

        await self.repository.create_ticket(
            jti=jti,
            user_id=user_id,
            app_id=app_id,
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
        logger.info("Issued SSO ticket %s for user %s, app %s", jti, user_id, app_id)

        return IssuedTicket(ticket=ticket, jti=jti, expires_in=self.ttl_seconds)


class TicketIntrospector:
    """
    Verifies and consumes tickets on behalf of a mini-app backend.

    Every failure is a final ``valid=False`` verdict, never an exception, so
    callers can tell a rejected ticket from an unreachable introspector.
    """

    def __init__(self, repository: SsoRepository, signer: TicketSigner):
        self.repository = repository
        self.signer = signer

    async def introspect(self, ticket: str, app_id: str) -> IntrospectionResult:
        try:
            result = await self._consume(ticket, app_id)
        except SsoError as e:
            logger.info("Ticket rejected for app %s: %s", app_id, e.message)
            return IntrospectionResult.rejected(e)

        logger.info("Ticket redeemed for user %s, app %s", result.sub, app_id)
        return result

    async def _consume(self, ticket: str, app_id: str) -> IntrospectionResult:
        try:
            claims = self.signer.verify(ticket, audience=app_id)
        except TicketExpiredError:
            raise Expired() from None
        except TicketInvalidError as e:
            raise Malformed(f"invalid ticket: {e}") from None

        jti = claims["jti"]
        entry = await self.repository.get_ticket(jti)
        if entry is None:
            raise TicketNotFound()

        # Read-only short cut for replays; the conditional update below is
        # what actually enforces single use.
        if entry.used:
            raise AlreadyUsed()

        if not await self.repository.try_mark_used(jti):
            raise ConcurrencyConflict()

        return IntrospectionResult(
            valid=True,
            sub=claims["sub"],
            scopes=list(claims.get("scopes") or []),
            app_origin=claims.get("appOrigin"),
        )
