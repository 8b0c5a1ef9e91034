"""Pydantic models for documents, generated study material and quiz progress.

Generated material is parsed leniently: every section is optional, unknown
keys are ignored, scalar values are coerced to text and unusable answer
indexes become ``None``. Quiz problems are reported by ``find_quiz_defects``
instead of being enforced.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_text(value: Any) -> Any:
    if isinstance(value, (int, float, bool)):
        return str(value)
    return value


def _as_int_or_none(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class DocumentStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Flashcard(CamelModel):
    front: str = ""
    back: str = ""

    @field_validator("front", "back", mode="before")
    @classmethod
    def _scalar_to_text(cls, v: Any) -> Any:
        return "" if v is None else _as_text(v)


class QuizQuestion(CamelModel):
    """A single multiple-choice question as produced by the model."""

    id: Optional[int] = None
    question: str = ""
    options: list[str] = Field(default_factory=list)
    correct_answer_index: Optional[int] = None
    explanation: str = ""

    @field_validator("id", "correct_answer_index", mode="before")
    @classmethod
    def _lenient_int(cls, v: Any) -> Optional[int]:
        # "q1", "B" and the like are dropped rather than rejected
        return _as_int_or_none(v)

    @field_validator("question", "explanation", mode="before")
    @classmethod
    def _scalar_to_text(cls, v: Any) -> Any:
        return "" if v is None else _as_text(v)

    @field_validator("options", mode="before")
    @classmethod
    def _options_to_text(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [_as_text(o) for o in v if o is not None]
        return v


class GeneratedStudyMaterial(CamelModel):
    summary: Optional[str] = None
    flashcards: Optional[list[Flashcard]] = None
    quiz: Optional[list[QuizQuestion]] = None

    @field_validator("summary", mode="before")
    @classmethod
    def _summary_to_text(cls, v: Any) -> Any:
        return _as_text(v)


def find_quiz_defects(material: GeneratedStudyMaterial) -> list[str]:
    """Describe quiz questions whose answer index or options are unusable."""
    defects: list[str] = []
    for pos, q in enumerate(material.quiz or []):
        label = f"question {q.id if q.id is not None else pos + 1}"
        if len(q.options) < 2:
            defects.append(f"{label}: fewer than two options")
        if q.correct_answer_index is None:
            defects.append(f"{label}: missing correctAnswerIndex")
        elif not 0 <= q.correct_answer_index < len(q.options):
            defects.append(
                f"{label}: correctAnswerIndex {q.correct_answer_index} "
                f"out of range for {len(q.options)} options"
            )
    return defects


# Persisted records


class NewDocument(CamelModel):
    owner_id: uuid.UUID
    file_name: str
    mime_type: str
    file_data: str


class DocumentRecord(CamelModel):
    id: uuid.UUID
    owner_id: uuid.UUID
    file_name: str
    mime_type: str
    file_data: str
    status: DocumentStatus = DocumentStatus.PENDING
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class NewStudyMaterial(CamelModel):
    document_id: uuid.UUID
    summary: Optional[str] = None
    flashcards: Optional[list[Flashcard]] = None
    quiz: Optional[list[QuizQuestion]] = None


class StudyMaterialRecord(NewStudyMaterial):
    id: uuid.UUID
    created_at: datetime = Field(default_factory=utcnow)


class NewQuizProgress(CamelModel):
    user_id: uuid.UUID
    study_material_id: uuid.UUID
    score: int = Field(ge=0)
    total_questions: int = Field(ge=1)


class QuizProgressRecord(NewQuizProgress):
    id: uuid.UUID
    completed_at: datetime = Field(default_factory=utcnow)

    @property
    def percentage(self) -> int:
        # Half-up rounding of score / total * 100
        return (self.score * 200 + self.total_questions) // (2 * self.total_questions)


__all__ = [
    "DocumentStatus",
    "Flashcard",
    "QuizQuestion",
    "GeneratedStudyMaterial",
    "find_quiz_defects",
    "NewDocument",
    "DocumentRecord",
    "NewStudyMaterial",
    "StudyMaterialRecord",
    "NewQuizProgress",
    "QuizProgressRecord",
    "utcnow",
]
