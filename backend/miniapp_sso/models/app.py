import enum
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from miniapp_sso.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class AppStatus(str, enum.Enum):
    active = "active"
    disabled = "disabled"


class LaunchMode(str, enum.Enum):
    iframe = "iframe"
    external = "external"


class MiniApp(Base):
    """Mini-app registry row.

    Owned by the app catalogue; the SSO core only ever reads it.
    """

    __tablename__ = "apps"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=AppStatus.active.value)
    launch_mode: Mapped[str] = mapped_column(String(20), default=LaunchMode.external.value)
    launch_url: Mapped[Optional[str]] = mapped_column(Text)

    origin: Mapped[Optional[str]] = mapped_column(String(255))
    allowed_origins: Mapped[list] = mapped_column(JSONType, default=list)
    allowed_post_message_origins: Mapped[list] = mapped_column(JSONType, default=list)
    allowed_start_url_patterns: Mapped[list] = mapped_column(JSONType, default=list)
    scopes: Mapped[list] = mapped_column(JSONType, default=list)
    sso_mode: Mapped[str] = mapped_column(String(30), default="postMessageTicket")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
