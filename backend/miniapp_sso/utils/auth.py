from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from miniapp_sso.config import get_settings
from miniapp_sso.schemas.auth import HostUser, TokenPayload

settings = get_settings()

# HTTP Bearer token scheme
bearer_scheme = HTTPBearer(auto_error=False)

# Forward auth header name (TinyAuth, Authelia, Authentik, etc.)
REMOTE_USER_HEADER = "Remote-User"


def decode_token(token: str) -> TokenPayload:
    """
    Decode and validate a host session JWT.

    These are the host's own bearer tokens, signed with SECRET_KEY. They are
    unrelated to SSO tickets, which use the ticket signing context.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=["HS256"],
            options={"verify_exp": True, "verify_aud": False},
        )
        return TokenPayload(**payload)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_current_user(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> HostUser:
    """
    Get the authenticated host user.

    Supports two authentication methods:
    1. Forward auth header (Remote-User) when AUTH_TRUST_HEADER is enabled
    2. JWT Bearer token
    """
    if settings.auth_trust_header:
        remote_user = request.headers.get(REMOTE_USER_HEADER)
        if remote_user:
            return HostUser(id=remote_user, auth_method="forward-auth")

    if credentials:
        token_data = decode_token(credentials.credentials)
        return HostUser(id=token_data.sub)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )


CurrentUser = Annotated[HostUser, Depends(get_current_user)]
