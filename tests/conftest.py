"""Pytest fixtures backed by an in-memory SQLite database.

Every test gets a fresh database. Postgres-only behaviour (true concurrent
inserts) lives under tests/integration and is opt-in.
"""

import os
from typing import AsyncGenerator

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENV", "dev")

import pytest
import pytest_asyncio

from dotenv import load_dotenv
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

load_dotenv()

from xblade.services.realtime_service import SeasonNotifier  # noqa: E402
from xblade.utils.db_async import enable_sqlite_savepoints, import_models  # noqa: E402
from tests.factories import RecordingServer  # noqa: E402


@pytest_asyncio.fixture()
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Yield a fresh in-memory SQLite engine with all tables created."""
    import_models()
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(async_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        async_engine, expire_on_commit=False, class_=AsyncSession
    )
    async with session_factory() as session:
        yield session


@pytest.fixture()
def recording_server() -> RecordingServer:
    return RecordingServer()


@pytest.fixture()
def notifier(recording_server: RecordingServer) -> SeasonNotifier:
    return SeasonNotifier(server=recording_server, history_size=50)  # type: ignore[arg-type]


@pytest_asyncio.fixture()
async def app_client(
    db_session: AsyncSession, notifier: SeasonNotifier
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with the app wired to the test session and an admin caller."""
    from xblade.main import app
    from xblade.routes.deps import Principal, get_principal
    from xblade.utils.db_async import get_session

    async def _get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    original_notifier = app.state.notifier
    app.state.notifier = notifier
    app.dependency_overrides[get_session] = _get_session_override
    app.dependency_overrides[get_principal] = lambda: Principal(id="admin-1", is_admin=True)
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_session, None)
        app.dependency_overrides.pop(get_principal, None)
        app.state.notifier = original_notifier


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Ensure HTTPX uses asyncio backend during tests."""
    return "asyncio"
