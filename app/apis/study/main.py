from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, status

from app.core.config import settings
from app.core.exceptions import (
    DocumentNotFoundError,
    StudyMaterialNotFoundError,
    UploadRejectedError,
)
from app.apis.deps import CurrentUser, StudyServiceDep
from app.modules.study.models import DocumentRecord
from .schemas import (
    DocumentSummary,
    MaterialResponse,
    ProgressRead,
    SaveProgressRequest,
    SaveProgressResponse,
    StatusResponse,
    StudyMaterialRead,
    UploadRequest,
    UploadResponse,
)


router = APIRouter(prefix=f"/{settings.app.version}/study", tags=["study"])


def _summary(doc: DocumentRecord) -> DocumentSummary:
    return DocumentSummary(
        id=doc.id,
        file_name=doc.file_name,
        status=doc.status,
        created_at=doc.created_at,
    )


@router.post(
    "/documents",
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    req: UploadRequest, user: CurrentUser, service: StudyServiceDep
) -> UploadResponse:
    try:
        doc = await service.upload(user.id, req.file_name, req.mime_type, req.file_data)
    except UploadRejectedError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return UploadResponse(document_id=doc.id, status=doc.status)


@router.get("/documents", response_model=list[DocumentSummary])
async def document_history(
    user: CurrentUser, service: StudyServiceDep
) -> list[DocumentSummary]:
    docs = await service.history(user.id)
    return [_summary(d) for d in docs]


@router.get("/documents/{document_id}/status", response_model=StatusResponse)
async def document_status(
    document_id: uuid.UUID, user: CurrentUser, service: StudyServiceDep
) -> StatusResponse:
    try:
        view = await service.status(document_id, user.id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return StatusResponse(status=view.status, error_message=view.error_message)


@router.get("/documents/{document_id}", response_model=MaterialResponse)
async def document_material(
    document_id: uuid.UUID, user: CurrentUser, service: StudyServiceDep
) -> MaterialResponse:
    try:
        result = await service.get_material(document_id, user.id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    material = result.study_material
    return MaterialResponse(
        document=_summary(result.document),
        study_material=StudyMaterialRead(
            id=material.id,
            summary=material.summary,
            flashcards=material.flashcards,
            quiz=material.quiz,
        )
        if material
        else None,
    )


@router.post(
    "/progress",
    response_model=SaveProgressResponse,
    status_code=status.HTTP_201_CREATED,
)
async def save_progress(
    req: SaveProgressRequest, user: CurrentUser, service: StudyServiceDep
) -> SaveProgressResponse:
    try:
        progress = await service.save_progress(
            user.id, req.study_material_id, req.score, req.total_questions
        )
    except StudyMaterialNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SaveProgressResponse(id=progress.id)


@router.get("/progress", response_model=list[ProgressRead])
async def get_progress(
    user: CurrentUser,
    service: StudyServiceDep,
    study_material_id: Optional[uuid.UUID] = Query(default=None, alias="studyMaterialId"),
) -> list[ProgressRead]:
    rows = await service.get_progress(user.id, study_material_id)
    return [
        ProgressRead(
            id=p.id,
            score=p.score,
            total_questions=p.total_questions,
            percentage=p.percentage,
            completed_at=p.completed_at,
        )
        for p in rows
    ]
