"""SQLAlchemy-backed store, used for both Postgres (asyncpg) and SQLite (aiosqlite)."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.db.schemas.documents import Document, StudyMaterial
from app.core.db.schemas.progress import QuizProgress
from app.core.logging import get_logger
from app.modules.study.models import (
    DocumentRecord,
    DocumentStatus,
    NewDocument,
    NewQuizProgress,
    NewStudyMaterial,
    QuizProgressRecord,
    StudyMaterialRecord,
)

logger = get_logger(__name__)


def _document_record(row: Document) -> DocumentRecord:
    return DocumentRecord(
        id=row.id,
        owner_id=row.owner_id,
        file_name=row.file_name,
        mime_type=row.mime_type,
        file_data=row.file_data,
        status=row.status,
        error_message=row.error_message,
        created_at=row.created_at,
    )


def _material_record(row: StudyMaterial) -> StudyMaterialRecord:
    return StudyMaterialRecord(
        id=row.id,
        document_id=row.document_id,
        summary=row.summary,
        flashcards=row.flashcards,
        quiz=row.quiz,
        created_at=row.created_at,
    )


def _progress_record(row: QuizProgress) -> QuizProgressRecord:
    return QuizProgressRecord(
        id=row.id,
        user_id=row.user_id,
        study_material_id=row.study_material_id,
        score=row.score,
        total_questions=row.total_questions,
        completed_at=row.completed_at,
    )


class SqlDocumentRepository:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def find_by_id(self, document_id: uuid.UUID) -> Optional[DocumentRecord]:
        async with self.session_maker() as session:
            row = await session.get(Document, document_id)
            return _document_record(row) if row else None

    async def find_by_owner(self, owner_id: uuid.UUID) -> list[DocumentRecord]:
        async with self.session_maker() as session:
            rows = await session.execute(
                select(Document)
                .where(Document.owner_id == owner_id)
                .order_by(Document.created_at.desc())
            )
            return [_document_record(r) for r in rows.scalars().all()]

    async def create(self, data: NewDocument) -> DocumentRecord:
        async with self.session_maker() as session:
            row = Document(
                owner_id=data.owner_id,
                file_name=data.file_name,
                mime_type=data.mime_type,
                file_data=data.file_data,
                status=DocumentStatus.PENDING,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _document_record(row)

    async def update_status(
        self,
        document_id: uuid.UUID,
        status: DocumentStatus,
        error_message: Optional[str] = None,
    ) -> bool:
        async with self.session_maker() as session:
            row = await session.get(Document, document_id)
            if not row:
                return False
            row.status = status
            row.error_message = error_message
            await session.commit()
            return True


class SqlStudyMaterialRepository:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def find_by_id(self, material_id: uuid.UUID) -> Optional[StudyMaterialRecord]:
        async with self.session_maker() as session:
            row = await session.get(StudyMaterial, material_id)
            return _material_record(row) if row else None

    async def find_by_document_id(
        self, document_id: uuid.UUID
    ) -> Optional[StudyMaterialRecord]:
        async with self.session_maker() as session:
            result = await session.execute(
                select(StudyMaterial).where(StudyMaterial.document_id == document_id)
            )
            row = result.scalar_one_or_none()
            return _material_record(row) if row else None

    async def create(self, data: NewStudyMaterial) -> StudyMaterialRecord:
        payload = data.model_dump(mode="json", by_alias=True)
        async with self.session_maker() as session:
            row = StudyMaterial(
                document_id=data.document_id,
                summary=data.summary,
                flashcards=payload["flashcards"],
                quiz=payload["quiz"],
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _material_record(row)


class SqlQuizProgressRepository:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def create(self, data: NewQuizProgress) -> QuizProgressRecord:
        async with self.session_maker() as session:
            row = QuizProgress(
                user_id=data.user_id,
                study_material_id=data.study_material_id,
                score=data.score,
                total_questions=data.total_questions,
            )
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return _progress_record(row)

    async def find_by_owner(self, user_id: uuid.UUID) -> list[QuizProgressRecord]:
        async with self.session_maker() as session:
            rows = await session.execute(
                select(QuizProgress)
                .where(QuizProgress.user_id == user_id)
                .order_by(QuizProgress.completed_at.desc())
            )
            return [_progress_record(r) for r in rows.scalars().all()]

    async def find_by_material(
        self, user_id: uuid.UUID, material_id: uuid.UUID
    ) -> list[QuizProgressRecord]:
        async with self.session_maker() as session:
            rows = await session.execute(
                select(QuizProgress)
                .where(
                    QuizProgress.user_id == user_id,
                    QuizProgress.study_material_id == material_id,
                )
                .order_by(QuizProgress.completed_at.desc())
            )
            return [_progress_record(r) for r in rows.scalars().all()]


class SqlStudyStore:
    def __init__(
        self,
        engine: AsyncEngine,
        session_maker: async_sessionmaker[AsyncSession],
    ):
        self.engine = engine
        self.documents = SqlDocumentRepository(session_maker)
        self.study_materials = SqlStudyMaterialRepository(session_maker)
        self.quiz_progress = SqlQuizProgressRepository(session_maker)

    async def init(self) -> None:
        # Tables are created by the app lifespan together with the users table
        logger.info("SQL study store ready (%s)", self.engine.url.get_backend_name())

    async def close(self) -> None:
        # The engine is shared with auth and disposed by the app lifespan
        return None


__all__ = [
    "SqlDocumentRepository",
    "SqlStudyMaterialRepository",
    "SqlQuizProgressRepository",
    "SqlStudyStore",
]
