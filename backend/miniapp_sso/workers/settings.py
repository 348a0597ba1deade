from typing import Optional

from arq.connections import RedisSettings

from miniapp_sso.config import get_settings


def get_redis_settings(redis_url: Optional[str] = None) -> RedisSettings:
    """arq connection settings from REDIS_URL (host, port, db, auth, TLS)."""
    return RedisSettings.from_dsn(redis_url or str(get_settings().redis_url))
