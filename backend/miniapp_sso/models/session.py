import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from miniapp_sso.database import Base


class MiniAppSession(Base):
    __tablename__ = "miniapp_sessions"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    app_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("apps.id", ondelete="CASCADE"), nullable=False
    )
    session_nonce: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    app_origin: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("idx_miniapp_sessions_user_id", "user_id"),
        Index("idx_miniapp_sessions_app_id", "app_id"),
        Index("idx_miniapp_sessions_expires_at", "expires_at"),
    )
