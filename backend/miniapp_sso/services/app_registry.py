from typing import Optional, Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from miniapp_sso.models.app import MiniApp
from miniapp_sso.schemas.app import AppConfig


class AppRegistry(Protocol):
    async def get_app(self, app_id: str) -> Optional[AppConfig]: ...


class SqlAppRegistry:
    """Reads mini-app metadata from the catalogue's ``apps`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_app(self, app_id: str) -> Optional[AppConfig]:
        # Live config: refresh any row already held by this session
        result = await self.db.execute(
            select(MiniApp)
            .where(MiniApp.id == app_id)
            .execution_options(populate_existing=True)
        )
        app = result.scalar_one_or_none()
        if app is None:
            return None
        return AppConfig.model_validate(app)
