import json
import uuid
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from app.modules.study import extractor
from app.modules.study.generator import SYSTEM_PROMPT, MaterialGenerator
from app.modules.study.jobs import MAX_ERROR_MESSAGE_CHARS, DocumentProcessor, failure_message
from app.modules.study.models import DocumentStatus

from tests.conftest import FakeProvider, make_document


def _processor(store, provider: FakeProvider) -> DocumentProcessor:
    return DocumentProcessor(store, MaterialGenerator(provider, "test-model"))


async def test_text_document_completes(store, owner_id):
    provider = FakeProvider()
    doc = await make_document(store, owner_id, text="The mitochondria is the powerhouse")

    await _processor(store, provider).process(doc.id)

    saved = await store.documents.find_by_id(doc.id)
    assert saved.status == DocumentStatus.COMPLETED
    assert saved.error_message is None

    material = await store.study_materials.find_by_document_id(doc.id)
    assert material is not None
    assert material.summary == "Plants turn sunlight into food."
    assert len(material.flashcards) == 2
    assert material.quiz[1].correct_answer_index == 1

    system_prompt, user_text, model = provider.calls[0]
    assert system_prompt == SYSTEM_PROMPT
    assert "The mitochondria is the powerhouse" in user_text
    assert model == "test-model"


async def test_pdf_parse_failure_marks_document_failed(store, owner_id):
    provider = FakeProvider()
    doc = await make_document(store, owner_id, text="%PDF-broken", mime_type="application/pdf")

    with patch.object(extractor, "_parse_pdf", side_effect=Exception("Invalid PDF structure")):
        await _processor(store, provider).process(doc.id)

    saved = await store.documents.find_by_id(doc.id)
    assert saved.status == DocumentStatus.FAILED
    assert saved.error_message.startswith("Failed to parse PDF")
    assert provider.calls == []
    assert await store.study_materials.find_by_document_id(doc.id) is None


async def test_image_document_fails_without_calling_provider(store, owner_id):
    provider = FakeProvider()
    doc = await make_document(store, owner_id, text="fake png", mime_type="image/png")

    await _processor(store, provider).process(doc.id)

    saved = await store.documents.find_by_id(doc.id)
    assert saved.status == DocumentStatus.FAILED
    assert "OCR" in saved.error_message
    assert provider.calls == []


async def test_provider_failure_is_recorded(store, owner_id):
    doc = await make_document(store, owner_id)

    await _processor(store, FakeProvider(error=ConnectionError("upstream timeout"))).process(doc.id)

    saved = await store.documents.find_by_id(doc.id)
    assert saved.status == DocumentStatus.FAILED
    assert saved.error_message == "upstream timeout"


async def test_unparseable_response_is_recorded(store, owner_id):
    doc = await make_document(store, owner_id)

    await _processor(store, FakeProvider("no json at all")).process(doc.id)

    saved = await store.documents.find_by_id(doc.id)
    assert saved.status == DocumentStatus.FAILED
    assert saved.error_message.startswith("Failed to parse AI response as JSON")


async def test_empty_error_message_becomes_unknown_error(store, owner_id):
    doc = await make_document(store, owner_id)

    await _processor(store, FakeProvider(error=RuntimeError())).process(doc.id)

    saved = await store.documents.find_by_id(doc.id)
    assert saved.status == DocumentStatus.FAILED
    assert saved.error_message == "Unknown error"


async def test_material_save_failure_leaves_no_partial_success(store, owner_id, monkeypatch):
    doc = await make_document(store, owner_id)

    async def broken_create(data):
        raise RuntimeError("disk full")

    monkeypatch.setattr(store.study_materials, "create", broken_create)
    await _processor(store, FakeProvider()).process(doc.id)

    saved = await store.documents.find_by_id(doc.id)
    assert saved.status == DocumentStatus.FAILED
    assert saved.error_message == "disk full"


async def test_missing_document_does_not_raise(store):
    provider = FakeProvider()

    await _processor(store, provider).process(uuid.uuid4())

    assert provider.calls == []


async def test_failure_while_recording_failure_is_swallowed():
    class BrokenDocuments:
        async def update_status(self, document_id, status, error_message=None):
            raise RuntimeError("database is gone")

        async def find_by_id(self, document_id):
            return None

    store = SimpleNamespace(documents=BrokenDocuments(), study_materials=None)

    await _processor(store, FakeProvider()).process(uuid.uuid4())


@pytest.mark.parametrize(
    "message, expected",
    [
        ("boom", "boom"),
        ("  padded  ", "padded"),
        ("", "Unknown error"),
        ("   ", "Unknown error"),
    ],
)
def test_failure_message(message, expected):
    assert failure_message(RuntimeError(message)) == expected


def test_failure_message_is_capped():
    message = failure_message(RuntimeError("x" * 5000))
    assert len(message) == MAX_ERROR_MESSAGE_CHARS


async def test_loosely_typed_material_still_completes(store, owner_id):
    payload = {
        "summary": "Arithmetic",
        "quiz": [
            {"id": "q1", "question": "2 + 2 = ?", "options": [3, 4, 5, 6], "correctAnswerIndex": 1},
            {"question": "Pick one", "options": ["x", "y"]},
        ],
    }
    doc = await make_document(store, owner_id)

    await _processor(store, FakeProvider(json.dumps(payload))).process(doc.id)

    saved = await store.documents.find_by_id(doc.id)
    assert saved.status == DocumentStatus.COMPLETED
    material = await store.study_materials.find_by_document_id(doc.id)
    assert material.quiz[0].options == ["3", "4", "5", "6"]
    assert material.quiz[1].correct_answer_index is None
