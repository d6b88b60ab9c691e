"""Alembic environment for the xblade season tables (async engines only)."""
import asyncio
import os
import ssl
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from dotenv import load_dotenv
from sqlalchemy import pool
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel

from xblade.schemas import clubs, leagues, players, season_clubs, season_players, seasons  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

load_dotenv(Path(__file__).resolve().parent.parent / ".env", override=False)

raw_url = os.getenv("DATABASE_URL")
if not raw_url:
    raise RuntimeError("DATABASE_URL is required for Alembic migrations")

url = make_url(raw_url)
if url.drivername in ("postgres", "postgresql"):
    url = url.set(drivername="postgresql+asyncpg")
elif url.drivername == "sqlite":
    url = url.set(drivername="sqlite+aiosqlite")

connect_args = {}
IS_SQLITE = url.drivername.startswith("sqlite")
if not IS_SQLITE:
    sslmode = url.query.get("sslmode")
    if isinstance(sslmode, tuple):
        sslmode = sslmode[-1] if sslmode else None
    url = url.difference_update_query(["sslmode", "channel_binding"])
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

DB_URL = url.render_as_string(hide_password=False)
config.set_main_option("sqlalchemy.url", DB_URL.replace("%", "%%"))

target_metadata = SQLModel.metadata


def run_migrations_offline() -> None:
    """Emit SQL for the configured URL without connecting."""
    context.configure(
        url=DB_URL,
        target_metadata=target_metadata,
        literal_binds=True,
        compare_type=True,
        render_as_batch=IS_SQLITE,
    )

    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        compare_type=True,
        compare_server_default=not IS_SQLITE,
        # SQLite cannot ALTER constraints in place
        render_as_batch=IS_SQLITE,
    )

    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    connectable: AsyncEngine = create_async_engine(
        DB_URL,
        poolclass=pool.NullPool,
        connect_args=connect_args,
    )

    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)

    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
