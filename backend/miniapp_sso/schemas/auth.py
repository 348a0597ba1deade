from pydantic import BaseModel


class TokenPayload(BaseModel):
    sub: str  # Host user id
    exp: int  # Expiration timestamp
    iat: int | None = None  # Issued at timestamp (optional for forward auth tokens)


class HostUser(BaseModel):
    id: str
    auth_method: str = "bearer"
