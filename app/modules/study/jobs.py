"""Document processing job: drives one document from pending to a terminal status.

``pending -> processing -> completed | failed``. The job is dispatched
fire-and-forget, so nothing escapes ``process``: every failure is recorded on
the document instead. Two jobs for the same document are not prevented.
"""

from __future__ import annotations

import asyncio
import time
import uuid

from app.core.exceptions import DocumentNotFoundError
from app.core.logging import get_logger
from app.core.repositories import StudyStore
from app.modules.study.extractor import extract_text
from app.modules.study.generator import MaterialGenerator
from app.modules.study.models import DocumentStatus, NewStudyMaterial

logger = get_logger(__name__)

MAX_ERROR_MESSAGE_CHARS = 1000


def failure_message(exc: BaseException) -> str:
    message = str(exc).strip() or "Unknown error"
    return message[:MAX_ERROR_MESSAGE_CHARS]


class DocumentProcessor:
    def __init__(self, store: StudyStore, generator: MaterialGenerator):
        self.store = store
        self.generator = generator

    async def process(self, document_id: uuid.UUID) -> None:
        log_extra = {"document_id": str(document_id)}
        started = time.monotonic()
        logger.info("Starting document processing %s", document_id, extra=log_extra)
        try:
            await self._run(document_id)
        except Exception as e:  # noqa: BLE001
            logger.exception(
                "Document processing FAILED for %s: %s", document_id, e, extra=log_extra
            )
            await self._mark_failed(document_id, failure_message(e))
            return

        logger.info(
            "Document processing COMPLETED for %s in %dms",
            document_id,
            int((time.monotonic() - started) * 1000),
            extra=log_extra,
        )

    async def _run(self, document_id: uuid.UUID) -> None:
        documents = self.store.documents
        await documents.update_status(document_id, DocumentStatus.PROCESSING)

        doc = await documents.find_by_id(document_id)
        if doc is None:
            raise DocumentNotFoundError(document_id)
        logger.info("Document found: %s (%s)", doc.file_name, doc.mime_type)

        # PDF parsing is CPU bound; keep it off the event loop
        content = await asyncio.to_thread(extract_text, doc.file_data, doc.mime_type)
        logger.info("Extracted content length: %d chars", len(content))

        material = await self.generator.generate(content)

        saved = await self.store.study_materials.create(
            NewStudyMaterial(
                document_id=doc.id,
                summary=material.summary,
                flashcards=material.flashcards,
                quiz=material.quiz,
            )
        )
        logger.info("Study material saved with ID: %s", saved.id)

        await documents.update_status(document_id, DocumentStatus.COMPLETED)

    async def _mark_failed(self, document_id: uuid.UUID, message: str) -> None:
        try:
            await self.store.documents.update_status(
                document_id, DocumentStatus.FAILED, message
            )
        except Exception as e:  # noqa: BLE001
            logger.error(
                "Failed to update status to 'failed' for %s: %s", document_id, e
            )


__all__ = ["DocumentProcessor", "failure_message", "MAX_ERROR_MESSAGE_CHARS"]
