import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from miniapp_sso.models.app import AppStatus, LaunchMode
from miniapp_sso.models.session import MiniAppSession
from miniapp_sso.repositories.sso_repository import SsoRepository, utcnow
from miniapp_sso.services.app_registry import AppRegistry
from miniapp_sso.services.errors import (
    AppNotActive,
    NotFound,
    StartUrlNotAllowed,
    UnsupportedLaunchMode,
)
from miniapp_sso.services.url_validator import is_allowed_start_url

logger = logging.getLogger(__name__)

SESSION_NONCE_BYTES = 32  # 256 bits


def generate_session_nonce() -> str:
    return secrets.token_hex(SESSION_NONCE_BYTES)


@dataclass(frozen=True)
class SessionStart:
    app_id: str
    session_nonce: str
    origin: str
    start_url: Optional[str]
    allowed_post_message_origins: list[str]
    expires_at: datetime


class SessionRegistry:
    def __init__(
        self,
        repository: SsoRepository,
        apps: AppRegistry,
        session_ttl: timedelta = timedelta(minutes=30),
    ):
        self.repository = repository
        self.apps = apps
        self.session_ttl = session_ttl

    async def start_session(self, user_id: str, app_id: str) -> SessionStart:
        """
        Start an embed session binding (user, app, origin).

        Checks run in a fixed order and each failure has its own error, so the
        host UI can tell a missing app from a misconfigured one.
        """
        app = await self.apps.get_app(app_id)
        if app is None:
            raise NotFound("App not found")

        if app.status != AppStatus.active.value:
            raise AppNotActive()

        if app.launch_mode != LaunchMode.iframe.value or not app.origin:
            raise UnsupportedLaunchMode()

        if app.launch_url and not is_allowed_start_url(app, app.launch_url):
            logger.warning("Rejected session start for app %s: launch URL not allowed", app_id)
            raise StartUrlNotAllowed()

        session_nonce = generate_session_nonce()
        expires_at = utcnow() + self.session_ttl
        await self.repository.create_session(
            user_id=user_id,
            app_id=app.id,
            session_nonce=session_nonce,
            app_origin=app.origin,
            expires_at=expires_at,
        )
        logger.info("Started mini-app session for user %s, app %s", user_id, app_id)

        return SessionStart(
            app_id=app.id,
            session_nonce=session_nonce,
            origin=app.origin,
            start_url=app.launch_url,
            allowed_post_message_origins=app.allowed_post_message_origins or [app.origin],
            expires_at=expires_at,
        )

    async def validate_session(self, session_nonce: str) -> Optional[MiniAppSession]:
        if not session_nonce:
            return None
        return await self.repository.get_valid_session(session_nonce)
