"""File-based store: one JSON array per entity under a data directory.

Records are held in memory and the whole file is rewritten after every
write. Writes are serialized with an ``asyncio.Lock`` per file, which is
enough for a single process; running several processes against the same
directory is not supported.
"""

from __future__ import annotations

import asyncio
import json
import os
import uuid
from pathlib import Path
from typing import Callable, Generic, Optional, TypeVar

from pydantic import BaseModel

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

T = TypeVar("T", bound=BaseModel)


class JsonTable(Generic[T]):
    def __init__(self, base_path: Path, name: str, model: type[T]):
        self.name = name
        self.model = model
        self.file_path = base_path / f"{name}.json"
        self.lock = asyncio.Lock()
        self._rows: list[T] = []

    def load(self) -> None:
        if not self.file_path.exists():
            logger.info("[%s] %s does not exist, starting empty", self.name, self.file_path)
            self._rows = []
            return
        raw = json.loads(self.file_path.read_text(encoding="utf-8") or "[]")
        self._rows = [self.model.model_validate(item) for item in raw]
        logger.info("[%s] Loaded %d records", self.name, len(self._rows))

    def _write(self, payload: str) -> None:
        self.file_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.file_path.with_suffix(".json.tmp")
        tmp.write_text(payload, encoding="utf-8")
        os.replace(tmp, self.file_path)

    async def save(self) -> None:
        payload = json.dumps(
            [row.model_dump(mode="json", by_alias=True) for row in self._rows],
            indent=2,
        )
        await asyncio.to_thread(self._write, payload)

    def find(self, predicate: Callable[[T], bool]) -> list[T]:
        return [row.model_copy(deep=True) for row in self._rows if predicate(row)]

    def find_one(self, predicate: Callable[[T], bool]) -> Optional[T]:
        for row in self._rows:
            if predicate(row):
                return row.model_copy(deep=True)
        return None

    async def insert(self, row: T) -> T:
        async with self.lock:
            self._rows.append(row)
            try:
                await self.save()
            except Exception:
                # Keep memory in step with the file on disk
                self._rows.pop()
                raise
        return row.model_copy(deep=True)

    async def update(self, predicate: Callable[[T], bool], **changes) -> bool:
        async with self.lock:
            for idx, row in enumerate(self._rows):
                if predicate(row):
                    self._rows[idx] = row.model_copy(update=changes)
                    try:
                        await self.save()
                    except Exception:
                        self._rows[idx] = row
                        raise
                    return True
        return False


class JsonDocumentRepository:
    def __init__(self, table: JsonTable[DocumentRecord]):
        self.table = table

    async def find_by_id(self, document_id: uuid.UUID) -> Optional[DocumentRecord]:
        return self.table.find_one(lambda d: d.id == document_id)

    async def find_by_owner(self, owner_id: uuid.UUID) -> list[DocumentRecord]:
        docs = self.table.find(lambda d: d.owner_id == owner_id)
        return sorted(docs, key=lambda d: d.created_at, reverse=True)

    async def create(self, data: NewDocument) -> DocumentRecord:
        record = DocumentRecord(id=uuid.uuid4(), **data.model_dump())
        return await self.table.insert(record)

    async def update_status(
        self,
        document_id: uuid.UUID,
        status: DocumentStatus,
        error_message: Optional[str] = None,
    ) -> bool:
        return await self.table.update(
            lambda d: d.id == document_id, status=status, error_message=error_message
        )


class JsonStudyMaterialRepository:
    def __init__(self, table: JsonTable[StudyMaterialRecord]):
        self.table = table

    async def find_by_id(self, material_id: uuid.UUID) -> Optional[StudyMaterialRecord]:
        return self.table.find_one(lambda m: m.id == material_id)

    async def find_by_document_id(
        self, document_id: uuid.UUID
    ) -> Optional[StudyMaterialRecord]:
        return self.table.find_one(lambda m: m.document_id == document_id)

    async def create(self, data: NewStudyMaterial) -> StudyMaterialRecord:
        record = StudyMaterialRecord(
            id=uuid.uuid4(),
            document_id=data.document_id,
            summary=data.summary,
            flashcards=data.flashcards,
            quiz=data.quiz,
        )
        return await self.table.insert(record)


class JsonQuizProgressRepository:
    def __init__(self, table: JsonTable[QuizProgressRecord]):
        self.table = table

    async def create(self, data: NewQuizProgress) -> QuizProgressRecord:
        record = QuizProgressRecord(id=uuid.uuid4(), **data.model_dump())
        return await self.table.insert(record)

    async def find_by_owner(self, user_id: uuid.UUID) -> list[QuizProgressRecord]:
        rows = self.table.find(lambda p: p.user_id == user_id)
        return sorted(rows, key=lambda p: p.completed_at, reverse=True)

    async def find_by_material(
        self, user_id: uuid.UUID, material_id: uuid.UUID
    ) -> list[QuizProgressRecord]:
        rows = self.table.find(
            lambda p: p.user_id == user_id and p.study_material_id == material_id
        )
        return sorted(rows, key=lambda p: p.completed_at, reverse=True)


class JsonStudyStore:
    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)
        self._documents = JsonTable(self.base_path, "documents", DocumentRecord)
        self._materials = JsonTable(self.base_path, "study_materials", StudyMaterialRecord)
        self._progress = JsonTable(self.base_path, "quiz_progress", QuizProgressRecord)
        self.documents = JsonDocumentRepository(self._documents)
        self.study_materials = JsonStudyMaterialRepository(self._materials)
        self.quiz_progress = JsonQuizProgressRepository(self._progress)

    async def init(self) -> None:
        for table in (self._documents, self._materials, self._progress):
            table.load()
        logger.info("JSON study store ready at %s", self.base_path)

    async def close(self) -> None:
        return None


__all__ = ["JsonTable", "JsonStudyStore"]
