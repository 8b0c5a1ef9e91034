from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Optional
from sqlalchemy import (
    DateTime,
    ForeignKey,
    String,
    Text,
    JSON,
    Enum,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db.base import Base
from app.modules.study.models import DocumentStatus, utcnow

if TYPE_CHECKING:
    from .auth import User
    from .progress import QuizProgress


class Document(Base):
    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    file_name: Mapped[str] = mapped_column(String, nullable=False)
    mime_type: Mapped[str] = mapped_column(String, nullable=False)
    file_data: Mapped[str] = mapped_column(Text, nullable=False)  # base64 encoded
    status: Mapped[DocumentStatus] = mapped_column(
        Enum(DocumentStatus, values_callable=lambda e: [m.value for m in e]),
        default=DocumentStatus.PENDING,
        nullable=False,
    )
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    owner: Mapped["User"] = relationship("User", back_populates="documents")
    study_material: Mapped[Optional["StudyMaterial"]] = relationship(
        "StudyMaterial",
        back_populates="document",
        cascade="all, delete-orphan",
        uselist=False,
    )


class StudyMaterial(Base):
    __tablename__ = "study_materials"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    flashcards: Mapped[Optional[list[dict]]] = mapped_column(JSON, nullable=True)
    quiz: Mapped[Optional[list[dict]]] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    document: Mapped["Document"] = relationship(
        "Document", back_populates="study_material"
    )
    progress: Mapped[list["QuizProgress"]] = relationship(
        "QuizProgress", back_populates="study_material", cascade="all, delete-orphan"
    )


__all__ = ["Document", "StudyMaterial"]
