from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from app.modules.study.models import DocumentStatus, Flashcard, QuizQuestion


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadRequest(ApiModel):
    file_name: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(..., min_length=1)
    file_data: str = Field(..., description="Base64 encoded file contents")


class UploadResponse(ApiModel):
    document_id: uuid.UUID
    status: DocumentStatus


class StatusResponse(ApiModel):
    status: DocumentStatus
    error_message: Optional[str] = None


class DocumentSummary(ApiModel):
    id: uuid.UUID
    file_name: str
    status: DocumentStatus
    created_at: datetime


class StudyMaterialRead(ApiModel):
    id: uuid.UUID
    summary: Optional[str] = None
    flashcards: Optional[list[Flashcard]] = None
    quiz: Optional[list[QuizQuestion]] = None


class MaterialResponse(ApiModel):
    document: DocumentSummary
    study_material: Optional[StudyMaterialRead] = None


class SaveProgressRequest(ApiModel):
    study_material_id: uuid.UUID
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=1)

    @model_validator(mode="after")
    def _score_within_total(self) -> "SaveProgressRequest":
        if self.score > self.total_questions:
            raise ValueError("score cannot exceed totalQuestions")
        return self


class SaveProgressResponse(ApiModel):
    id: uuid.UUID


class ProgressRead(ApiModel):
    id: uuid.UUID
    score: int
    total_questions: int
    percentage: int
    completed_at: datetime
