"""Persistence capabilities the study pipeline depends on.

The job driver and the query service only see these protocols; concrete
backends live in ``sql`` and ``json_store``.
"""

from __future__ import annotations

import uuid
from typing import Optional, Protocol

from app.modules.study.models import (
    DocumentRecord,
    DocumentStatus,
    NewDocument,
    NewQuizProgress,
    NewStudyMaterial,
    QuizProgressRecord,
    StudyMaterialRecord,
)


class DocumentRepository(Protocol):
    async def find_by_id(self, document_id: uuid.UUID) -> Optional[DocumentRecord]: ...

    async def find_by_owner(self, owner_id: uuid.UUID) -> list[DocumentRecord]:
        """All documents of ``owner_id``, newest first."""
        ...

    async def create(self, data: NewDocument) -> DocumentRecord: ...

    async def update_status(
        self,
        document_id: uuid.UUID,
        status: DocumentStatus,
        error_message: Optional[str] = None,
    ) -> bool:
        """Set status (and error message); False when the document is missing."""
        ...


class StudyMaterialRepository(Protocol):
    async def find_by_id(self, material_id: uuid.UUID) -> Optional[StudyMaterialRecord]: ...

    async def find_by_document_id(
        self, document_id: uuid.UUID
    ) -> Optional[StudyMaterialRecord]: ...

    async def create(self, data: NewStudyMaterial) -> StudyMaterialRecord: ...


class QuizProgressRepository(Protocol):
    async def create(self, data: NewQuizProgress) -> QuizProgressRecord: ...

    async def find_by_owner(self, user_id: uuid.UUID) -> list[QuizProgressRecord]: ...

    async def find_by_material(
        self, user_id: uuid.UUID, material_id: uuid.UUID
    ) -> list[QuizProgressRecord]: ...


class StudyStore(Protocol):
    documents: DocumentRepository
    study_materials: StudyMaterialRepository
    quiz_progress: QuizProgressRepository

    async def init(self) -> None: ...

    async def close(self) -> None: ...


__all__ = [
    "DocumentRepository",
    "StudyMaterialRepository",
    "QuizProgressRepository",
    "StudyStore",
]
