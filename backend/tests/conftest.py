import os
import tempfile

# Set test environment
os.environ["DEBUG"] = "true"
os.environ["SECRET_KEY"] = "change-me-in-production"
os.environ["HOST_TICKET_SECRET"] = "test-ticket-secret"
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'miniapp_sso_test.db')}",
)

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from miniapp_sso.api.dependencies import get_ticket_signer
from miniapp_sso.config import get_settings
from miniapp_sso.database import Base, get_db
from miniapp_sso.main import app
from miniapp_sso.models import MiniApp
from miniapp_sso.utils.signing import TicketSigner

MINI_ORIGIN = "https://mini.example"


@pytest.fixture
def database_url(tmp_path) -> str:
    """SQLite file per test unless TEST_DATABASE_URL points elsewhere."""
    return os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")


@pytest_asyncio.fixture(scope="function")
async def async_engine(database_url: str):
    """Create async engine for each test."""
    connect_args = {"timeout": 30} if database_url.startswith("sqlite") else {}
    engine = create_async_engine(database_url, echo=False, connect_args=connect_args)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture(scope="function")
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Async test client; each request gets its own database session."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def signer() -> TicketSigner:
    return get_ticket_signer()


@pytest.fixture
def sample_app_data() -> dict[str, Any]:
    """An active iframe mini-app whose launch URL passes its own allow-list."""
    return {
        "name": "Demo SSO App",
        "status": "active",
        "launch_mode": "iframe",
        "launch_url": f"{MINI_ORIGIN}/start?x=1",
        "origin": MINI_ORIGIN,
        "allowed_origins": [MINI_ORIGIN],
        "allowed_post_message_origins": [MINI_ORIGIN],
        "allowed_start_url_patterns": [{"patternType": "prefix", "value": "/start"}],
        "scopes": ["profile", "email"],
    }


@pytest_asyncio.fixture
async def make_app(db_session: AsyncSession, sample_app_data):
    """Factory for registry apps; keyword arguments override the sample data."""

    async def _make(**overrides: Any) -> MiniApp:
        data = {**sample_app_data, **overrides}
        mini_app = MiniApp(id=str(uuid4()), **data)
        db_session.add(mini_app)
        await db_session.commit()
        await db_session.refresh(mini_app)
        return mini_app

    return _make


@pytest_asyncio.fixture
async def test_app(make_app) -> MiniApp:
    return await make_app()


@pytest.fixture
def user_id() -> str:
    return "u1"


@pytest.fixture
def host_token() -> Callable[..., str]:
    """Factory for host session JWTs, as the host login flow would mint them."""

    def _mint(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else timedelta(days=7))
        to_encode = {"sub": user_id, "exp": expire, "iat": now}
        return jwt.encode(to_encode, get_settings().secret_key, algorithm="HS256")

    return _mint


@pytest.fixture
def auth_headers(user_id: str, host_token) -> dict[str, str]:
    """Create authorization headers for an authenticated host user."""
    token = host_token(user_id)
    return {"Authorization": f"Bearer {token}"}
