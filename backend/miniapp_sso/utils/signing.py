import time
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from miniapp_sso.config import Settings

TICKET_ALGORITHM = "HS256"


class TicketExpiredError(Exception):
    pass


class TicketInvalidError(Exception):
    pass


class TicketSigner:
    """Signing context for SSO tickets.

    Holds the symmetric key, issuer and the pinned algorithm. Built once from
    settings and handed to the issuer and introspector, so nothing in the
    protocol code reads the key from global state.
    """

    def __init__(self, secret: str, issuer: str, clock_skew_seconds: int = 5):
        if not secret:
            raise ValueError("Ticket signing secret must not be empty")
        self._secret = secret
        self.issuer = issuer
        self.clock_skew_seconds = clock_skew_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "TicketSigner":
        return cls(
            secret=settings.ticket_secret,
            issuer=settings.ticket_issuer,
            clock_skew_seconds=settings.clock_skew_seconds,
        )

    def sign(self, claims: dict[str, Any]) -> str:
        return jwt.encode(claims, self._secret, algorithm=TICKET_ALGORITHM)

    def verify(self, token: str, audience: str) -> dict[str, Any]:
        """Verify signature, expiry, audience and issuer; return the claims.

        Only HS256 is accepted whatever the token header says. Expiry is
        strict; the skew tolerance applies to ``iat`` only.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[TICKET_ALGORITHM],
                audience=audience,
                issuer=self.issuer,
                options={
                    "require_exp": True,
                    "require_iat": True,
                    "require_sub": True,
                    "require_jti": True,
                },
            )
        except ExpiredSignatureError:
            raise TicketExpiredError("ticket expired") from None
        except JWTError as e:
            raise TicketInvalidError(str(e)) from None

        if claims["iat"] > int(time.time()) + self.clock_skew_seconds:
            raise TicketInvalidError("issued in the future")
        return claims
