"""Upload and read-side operations for documents, material and quiz progress.

Every read is scoped to the requesting user. A document that exists but
belongs to someone else is reported exactly like a missing one.
"""

from __future__ import annotations

import base64
import binascii
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from app.core.exceptions import (
    DocumentNotFoundError,
    StudyMaterialNotFoundError,
    UploadRejectedError,
)
from app.core.logging import get_logger
from app.core.repositories import StudyStore
from app.modules.study.models import (
    DocumentRecord,
    DocumentStatus,
    NewDocument,
    NewQuizProgress,
    QuizProgressRecord,
    StudyMaterialRecord,
)

logger = get_logger(__name__)

ACCEPTED_MIME_TYPES = (
    "application/pdf",
    "text/plain",
    "text/html",
    "text/markdown",
    # Accepted so the job can record a clear "OCR not implemented" failure
    "image/png",
    "image/jpeg",
    "image/webp",
)

Dispatcher = Callable[[uuid.UUID], None]


def validate_upload(mime_type: str, file_data: str, max_bytes: int) -> None:
    """Apply the upload acceptance policy: type, encoding and decoded size."""
    primary = (mime_type or "").split(";", 1)[0].strip().lower()
    if primary not in ACCEPTED_MIME_TYPES:
        raise UploadRejectedError(
            f"Unsupported file type: {mime_type or 'unknown'}", status_code=415
        )
    try:
        # MIME-style base64 wraps lines; whitespace is not part of the payload
        raw = base64.b64decode("".join(file_data.split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise UploadRejectedError("File data is not valid base64") from e
    if not raw:
        raise UploadRejectedError("File is empty")
    if len(raw) > max_bytes:
        raise UploadRejectedError(
            f"File size too large. Maximum is {max_bytes // (1024 * 1024)}MB.",
            status_code=413,
        )


@dataclass(frozen=True)
class DocumentStatusView:
    status: DocumentStatus
    error_message: Optional[str]


@dataclass(frozen=True)
class DocumentWithMaterial:
    document: DocumentRecord
    study_material: Optional[StudyMaterialRecord]


@dataclass(frozen=True)
class ProgressView:
    id: uuid.UUID
    score: int
    total_questions: int
    percentage: int
    completed_at: datetime


class StudyService:
    def __init__(
        self,
        store: StudyStore,
        dispatch: Dispatcher,
        *,
        max_upload_bytes: int = 100 * 1024 * 1024,
    ):
        self.store = store
        self.dispatch = dispatch
        self.max_upload_bytes = max_upload_bytes

    async def upload(
        self, owner_id: uuid.UUID, file_name: str, mime_type: str, file_data: str
    ) -> DocumentRecord:
        """Create a pending document and hand it to the dispatcher."""
        validate_upload(mime_type, file_data, self.max_upload_bytes)
        doc = await self.store.documents.create(
            NewDocument(
                owner_id=owner_id,
                file_name=file_name,
                mime_type=mime_type,
                file_data=file_data,
            )
        )
        logger.info("Document %s uploaded by %s (%s)", doc.id, owner_id, mime_type)
        self.dispatch(doc.id)
        return doc

    async def _owned_document(
        self, document_id: uuid.UUID, user_id: uuid.UUID
    ) -> DocumentRecord:
        doc = await self.store.documents.find_by_id(document_id)
        if doc is None or doc.owner_id != user_id:
            raise DocumentNotFoundError(document_id)
        return doc

    async def status(
        self, document_id: uuid.UUID, user_id: uuid.UUID
    ) -> DocumentStatusView:
        doc = await self._owned_document(document_id, user_id)
        return DocumentStatusView(status=doc.status, error_message=doc.error_message)

    async def get_material(
        self, document_id: uuid.UUID, user_id: uuid.UUID
    ) -> DocumentWithMaterial:
        """Document plus its material; material is None until generation completes."""
        doc = await self._owned_document(document_id, user_id)
        material = await self.store.study_materials.find_by_document_id(document_id)
        return DocumentWithMaterial(document=doc, study_material=material)

    async def history(self, user_id: uuid.UUID) -> list[DocumentRecord]:
        return await self.store.documents.find_by_owner(user_id)

    async def save_progress(
        self,
        user_id: uuid.UUID,
        study_material_id: uuid.UUID,
        score: int,
        total_questions: int,
    ) -> QuizProgressRecord:
        material = await self.store.study_materials.find_by_id(study_material_id)
        if material is None:
            raise StudyMaterialNotFoundError(study_material_id)
        doc = await self.store.documents.find_by_id(material.document_id)
        if doc is None or doc.owner_id != user_id:
            raise StudyMaterialNotFoundError(study_material_id)

        return await self.store.quiz_progress.create(
            NewQuizProgress(
                user_id=user_id,
                study_material_id=study_material_id,
                score=score,
                total_questions=total_questions,
            )
        )

    async def get_progress(
        self, user_id: uuid.UUID, study_material_id: Optional[uuid.UUID] = None
    ) -> list[ProgressView]:
        if study_material_id is None:
            rows = await self.store.quiz_progress.find_by_owner(user_id)
        else:
            rows = await self.store.quiz_progress.find_by_material(
                user_id, study_material_id
            )
        return [
            ProgressView(
                id=p.id,
                score=p.score,
                total_questions=p.total_questions,
                percentage=p.percentage,
                completed_at=p.completed_at,
            )
            for p in rows
        ]


__all__ = [
    "ACCEPTED_MIME_TYPES",
    "validate_upload",
    "DocumentStatusView",
    "DocumentWithMaterial",
    "ProgressView",
    "StudyService",
]
