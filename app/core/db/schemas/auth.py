from __future__ import annotations

from typing import TYPE_CHECKING
from sqlalchemy.orm import Mapped, relationship

from fastapi_users_db_sqlalchemy import SQLAlchemyBaseUserTableUUID

from app.core.db.base import Base

if TYPE_CHECKING:
    from .documents import Document
    from .progress import QuizProgress


class User(SQLAlchemyBaseUserTableUUID, Base):
    __tablename__ = "users"

    # Relationships
    documents: Mapped[list["Document"]] = relationship(
        "Document", back_populates="owner", cascade="all, delete-orphan"
    )
    quiz_progress: Mapped[list["QuizProgress"]] = relationship(
        "QuizProgress", back_populates="user", cascade="all, delete-orphan"
    )


__all__ = ["User"]
