from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SessionStartRequest(CamelModel):
    app_id: str = Field(..., min_length=1)


class SessionStartResponse(CamelModel):
    app_id: str
    session_nonce: str
    origin: str
    start_url: Optional[str] = None
    allowed_post_message_origins: list[str]
    expires_at: datetime


class TicketRequest(CamelModel):
    app_id: str = Field(..., min_length=1)
    # Checked by the issuer so the missing-nonce case gets its own error
    session_nonce: Optional[str] = None


class TicketResponse(CamelModel):
    ticket: str
    expires_in: int


class IntrospectRequest(CamelModel):
    # Both optional: the introspect route answers a 200 verdict for any body
    ticket: Optional[str] = None
    app_id: Optional[str] = None


class IntrospectResponse(CamelModel):
    valid: bool
    reason: Optional[str] = None
    sub: Optional[str] = None
    scopes: Optional[list[str]] = None
    app_origin: Optional[str] = None

