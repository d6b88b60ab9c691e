"""Async SQLAlchemy engine, session and unit-of-work helpers."""

import ssl
from typing import Any, AsyncContextManager, AsyncGenerator, Dict, Tuple

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    AsyncSessionTransaction,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from xblade.config import settings


def _normalize_db_url(url: str) -> str:
    """Select an async driver for bare postgres/sqlite URLs.

    "postgres://" and "postgresql://" become "postgresql+asyncpg://";
    "sqlite://" becomes "sqlite+aiosqlite://". Explicit drivers are respected.
    """
    u = make_url(url)
    driver = (u.drivername or "").lower()
    if "+" in driver:
        return u.render_as_string(hide_password=False)
    if driver in ("postgres", "postgresql"):
        u = u.set(drivername="postgresql+asyncpg")
    elif driver == "sqlite":
        u = u.set(drivername="sqlite+aiosqlite")
    return u.render_as_string(hide_password=False)


def _prepare_connection(url: str) -> Tuple[str, Dict[str, Any]]:
    """Strip query args asyncpg rejects and turn sslmode into connect kwargs."""
    u = make_url(_normalize_db_url(url))
    if not u.drivername.startswith("postgresql"):
        return u.render_as_string(hide_password=False), {}

    raw_sslmode = u.query.get("sslmode")
    if isinstance(raw_sslmode, tuple):
        raw_sslmode = raw_sslmode[-1] if raw_sslmode else None
    sslmode = raw_sslmode.lower() if raw_sslmode else None
    u = u.difference_update_query(["sslmode", "channel_binding"])
    cleaned_url = u.render_as_string(hide_password=False)

    connect_args: Dict[str, Any] = {}
    if sslmode == "disable":
        connect_args["ssl"] = False
    elif sslmode in {"require", "verify-ca"}:
        ssl_context = ssl.create_default_context()
        ssl_context.check_hostname = False
        if sslmode == "require":
            ssl_context.verify_mode = ssl.CERT_NONE
        connect_args["ssl"] = ssl_context
    elif sslmode and sslmode not in {"allow", "prefer"}:
        connect_args["ssl"] = ssl.create_default_context()

    return cleaned_url, connect_args


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let pysqlite/aiosqlite honour SAVEPOINT by emitting BEGIN ourselves.

    The cascade coordinator isolates each dependent in a savepoint; without
    this the driver's implicit transaction handling silently breaks nesting.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # type: ignore[no-untyped-def]
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):  # type: ignore[no-untyped-def]
        # IMMEDIATE takes the write lock here; a second writer waits on busy_timeout
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the configured backend."""
    cleaned_url, connect_args = _prepare_connection(url)
    if cleaned_url.startswith("sqlite"):
        engine = create_async_engine(cleaned_url, echo=echo)
        enable_sqlite_savepoints(engine)
        return engine
    return create_async_engine(
        cleaned_url,
        echo=echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


engine = build_engine(settings.database_url, echo=settings.sql_echo)
DATABASE_URL = engine.url.render_as_string(hide_password=False)
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session."""
    async with SessionLocal() as session:
        yield session


def unit_of_work(db: AsyncSession) -> AsyncContextManager[AsyncSessionTransaction]:
    """Open the transaction for one mutation.

    Request sessions start clean, so this is a real BEGIN/COMMIT. When the
    session already holds an open transaction (a caller that read first, or a
    test harness wrapping everything) the work runs in a savepoint instead.
    """
    if db.in_transaction():
        return db.begin_nested()
    return db.begin()


def import_models() -> None:
    """Import every table module so SQLModel metadata is complete."""
    from xblade.schemas import clubs, leagues, players, season_clubs, season_players, seasons  # noqa: F401


async def init_db():
    """Initialize the database (create tables)."""
    import_models()

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    """Dispose of the async engine and its connection pool."""
    await engine.dispose()


def describe_database_url(url: str) -> str:
    """Return a sanitized, human-readable description of the DB URL for logging.

    Example: "postgresql+asyncpg://user@host:5432/dbname"
    Passwords are never included.
    """
    try:
        u = make_url(url)
        auth = u.username or "?"
        host = u.host or "?"
        port = f":{u.port}" if u.port else ""
        db = u.database or "?"
        return f"{u.drivername}://{auth}@{host}{port}/{db}"
    except Exception:
        return "<unparseable database URL>"
