"""Study material generator: one provider call, then defensive parsing.

The generator knows nothing about documents or storage. Provider failures
propagate unchanged; output that is not a JSON object surfaces as
``ResponseParseError``. Anything that parses is kept, with bad parts dropped.
Nothing is retried here.
"""

from __future__ import annotations

import time
from typing import Optional

from pydantic import BaseModel, ValidationError

from app.core.logging import get_logger
from app.modules.study.models import (
    Flashcard,
    GeneratedStudyMaterial,
    QuizQuestion,
    find_quiz_defects,
)
from app.modules.study.normalizer import parse_ai_response
from app.modules.study.providers import CompletionProvider

logger = get_logger(__name__)


SYSTEM_PROMPT = """You are an expert tutor. Your goal is to help students understand material 100% and ace their exams.

When given document content, you must:
1. Create a clear, simple summary ("Explain like I'm 12")
2. Create a comprehensive set of flashcards for key terms and concepts (at least 10)
3. Create a challenging multiple-choice quiz that tests deep understanding (at least 15-20 questions)

The user needs a LOT of practice questions to pass their exam. Be thorough.

CRITICAL: You MUST respond with ONLY valid JSON - no markdown, no code blocks, no extra text.
Response format:
{
  "summary": "string - your ELI12 summary",
  "flashcards": [{"front": "concept", "back": "explanation"}, ...],
  "quiz": [{"id": 1, "question": "question text", "options": ["A", "B", "C", "D"], "correctAnswerIndex": 0, "explanation": "why this is correct"}, ...]
}

Do NOT wrap your response in ```json or any markdown. Return ONLY the raw JSON object."""


def _build_instruction(document_text: str) -> str:
    return (
        "Please analyze this document and generate study material:\n\n"
        f"{document_text}"
    )


def _lenient_items(payload: dict, key: str, model: type[BaseModel]) -> Optional[list]:
    """Validate one list section item by item, dropping what cannot be used."""
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, list):
        logger.warning("Ignoring %s: expected a list, got %s", key, type(value).__name__)
        return None

    items = []
    for pos, raw in enumerate(value):
        try:
            items.append(model.model_validate(raw))
        except ValidationError as e:
            logger.warning("Dropping %s[%d]: %d validation errors", key, pos, e.error_count())
    return items


def to_study_material(payload: dict) -> GeneratedStudyMaterial:
    """Coerce a parsed response into the material shape, numbering quiz ids.

    Never fails on shape: unusable sections or items are logged and dropped.
    """
    summary = payload.get("summary")
    if summary is not None and not isinstance(summary, (str, int, float)):
        logger.warning("Ignoring summary: expected text, got %s", type(summary).__name__)
        summary = None

    material = GeneratedStudyMaterial(
        summary=summary,
        flashcards=_lenient_items(payload, "flashcards", Flashcard),
        quiz=_lenient_items(payload, "quiz", QuizQuestion),
    )

    for pos, q in enumerate(material.quiz or []):
        if q.id is None:
            q.id = pos + 1
    return material


class MaterialGenerator:
    def __init__(self, provider: CompletionProvider, model: str):
        self.provider = provider
        self.model = model

    async def generate(self, document_text: str) -> GeneratedStudyMaterial:
        logger.info(
            "Generating study material: provider=%s, model=%s, input=%d chars",
            self.provider.name,
            self.model,
            len(document_text),
        )
        started = time.monotonic()
        raw = await self.provider.complete(
            SYSTEM_PROMPT, _build_instruction(document_text), self.model
        )
        elapsed_ms = int((time.monotonic() - started) * 1000)

        material = to_study_material(parse_ai_response(raw))
        logger.info(
            "Generation completed in %dms: %d flashcards, %d quiz questions",
            elapsed_ms,
            len(material.flashcards or []),
            len(material.quiz or []),
        )
        for defect in find_quiz_defects(material):
            logger.warning("Quiz defect: %s", defect)
        return material


__all__ = ["SYSTEM_PROMPT", "MaterialGenerator", "to_study_material"]
