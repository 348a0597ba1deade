from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UrlPathPattern(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    pattern_type: Literal["exact", "prefix", "regex"] = Field(alias="patternType")
    value: str
    description: Optional[str] = None


class AppConfig(BaseModel):
    """Read-only view of a registry app, as consumed by the SSO core."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    status: str
    launch_mode: str
    launch_url: Optional[str] = None
    origin: Optional[str] = None
    allowed_origins: list[str] = []
    allowed_post_message_origins: list[str] = []
    allowed_start_url_patterns: list[UrlPathPattern] = []
    scopes: list[str] = []
    sso_mode: str = "postMessageTicket"

    @field_validator(
        "allowed_origins",
        "allowed_post_message_origins",
        "allowed_start_url_patterns",
        "scopes",
        mode="before",
    )
    @classmethod
    def null_as_empty(cls, v):
        return v or []
