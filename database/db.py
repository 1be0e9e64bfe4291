from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

from sqlalchemy import create_engine, make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from settings import DatabaseSettings

from .models import Base

SessionFactory = sessionmaker[Session]
AsyncSessionFactory = async_sessionmaker[AsyncSession]

def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")

def _engine_options(url: str) -> dict[str, Any]:
    if _is_memory_sqlite(url):
        # one shared connection, otherwise every session sees an empty database
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {}

def _async_url(url: str) -> str:
    parsed = make_url(url)
    if parsed.drivername == "sqlite":
        parsed = parsed.set(drivername="sqlite+aiosqlite")
    return parsed.render_as_string(hide_password=False)

def create_session_factory(database_url: str | None = None) -> SessionFactory:
    url = database_url or DatabaseSettings().DATABASE_URL

    engine = create_engine(url, **_engine_options(url))
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)

async def create_async_session_factory(database_url: str | None = None) -> AsyncSessionFactory:
    """Асинхронная фабрика сессий, sqlite:// переводится на драйвер aiosqlite"""
    url = _async_url(database_url or DatabaseSettings().DATABASE_URL)

    engine = create_async_engine(url, **_engine_options(url))
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)
    return async_sessionmaker(bind=engine, expire_on_commit=False)

async def dispose_async_session_factory(factory: AsyncSessionFactory) -> None:
    engine = factory.kw.get("bind")
    if engine is not None:
        await engine.dispose()

@contextmanager
def create_session(factory: SessionFactory) -> Iterator[Session]:
    with factory() as session:
        with session.begin():
            yield session

@asynccontextmanager
async def create_async_session(factory: AsyncSessionFactory) -> AsyncIterator[AsyncSession]:
    async with factory() as session:
        async with session.begin():
            yield session
