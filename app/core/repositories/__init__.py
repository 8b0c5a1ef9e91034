from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.config import DatabaseSettings
from .interfaces import (
    DocumentRepository,
    QuizProgressRepository,
    StudyMaterialRepository,
    StudyStore,
)
from .json_store import JsonStudyStore
from .sql import SqlStudyStore


def build_store(
    db_settings: DatabaseSettings,
    engine: AsyncEngine,
    session_maker: async_sessionmaker[AsyncSession],
) -> StudyStore:
    """Pick the storage backend named by ``DB_ADAPTER``."""
    adapter = (db_settings.adapter or "sqlite").lower()
    if adapter == "json":
        return JsonStudyStore(db_settings.json_path)
    if adapter in ("sqlite", "postgres"):
        return SqlStudyStore(engine, session_maker)
    raise ValueError(f"Unknown DB_ADAPTER: {db_settings.adapter}")


__all__ = [
    "DocumentRepository",
    "StudyMaterialRepository",
    "QuizProgressRepository",
    "StudyStore",
    "JsonStudyStore",
    "SqlStudyStore",
    "build_store",
]
