from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from fastapi import Request

from app.core.config import DatabaseSettings

from pathlib import Path
from typing import AsyncIterator
import logging


Base = declarative_base()


logger = logging.getLogger(__name__)


def create_engine(db_settings: DatabaseSettings, *, echo: bool = False) -> AsyncEngine:
    """Build the async engine once at startup; callers own its lifecycle."""
    url = str(db_settings.connection_string)
    if url.startswith("sqlite"):
        Path(db_settings.sqlite_path).parent.mkdir(parents=True, exist_ok=True)
        return create_async_engine(url, echo=echo)
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    # Import models so Base metadata is aware of them
    from app.core.db import schemas  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Session rolled back due to error: {e}")
            raise
