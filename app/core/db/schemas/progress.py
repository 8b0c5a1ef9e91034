from __future__ import annotations

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db.base import Base
from app.modules.study.models import utcnow

if TYPE_CHECKING:
    from .auth import User
    from .documents import StudyMaterial


class QuizProgress(Base):
    """One row per finished quiz attempt; never updated."""

    __tablename__ = "quiz_progress"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    study_material_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("study_materials.id", ondelete="CASCADE"), nullable=False, index=True
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_questions: Mapped[int] = mapped_column(Integer, nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )

    user: Mapped["User"] = relationship("User", back_populates="quiz_progress")
    study_material: Mapped["StudyMaterial"] = relationship(
        "StudyMaterial", back_populates="progress"
    )


__all__ = ["QuizProgress"]
