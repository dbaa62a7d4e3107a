# takes/db.py
from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from takes.core.config import get_settings

engine: AsyncEngine
SessionLocal: async_sessionmaker[AsyncSession]


def _apply_async_scheme(database_url: str) -> str:
    if database_url.startswith("postgresql+psycopg://"):
        return database_url.replace("postgresql+psycopg://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgresql+psycopg2://"):
        return database_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite://"):
        return database_url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    return database_url


def create_engine_for_url(database_url: str) -> AsyncEngine:
    url = make_url(_apply_async_scheme(database_url))
    connect_args: dict = {}
    kwargs: dict = {}

    if url.get_backend_name() == "postgresql" and url.get_driver_name() == "asyncpg":
        query = dict(url.query)
        if "sslmode" in query:
            # asyncpg takes the libpq sslmode values through `ssl`
            connect_args["ssl"] = query.pop("sslmode")
        # asyncpg does not support channel_binding
        query.pop("channel_binding", None)
        url = url._replace(query=query)
        kwargs["pool_pre_ping"] = True
    elif url.get_backend_name() == "sqlite":
        connect_args["check_same_thread"] = False
        if not url.database or url.database == ":memory:":
            # one shared connection, otherwise every session sees an empty db
            kwargs["poolclass"] = StaticPool

    return create_async_engine(url, future=True, connect_args=connect_args, **kwargs)


def configure_engine(database_url: str | None = None) -> None:
    """Configure SQLAlchemy engine and session factory."""

    global engine, SessionLocal

    engine = create_engine_for_url(database_url or get_settings().database_url)
    SessionLocal = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_async_session() -> AsyncIterator[AsyncSession]:
    async with SessionLocal() as session:
        yield session


configure_engine()
