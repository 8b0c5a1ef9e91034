from __future__ import annotations

import base64
import json
import os
import uuid

import pytest

# Settings are loaded at import time and refuse the dev JWT secret outside dev
os.environ.setdefault("MODE", "dev")

from app.core.config import DatabaseSettings
from app.core.db.base import create_engine, create_session_maker, create_tables
from app.core.repositories import JsonStudyStore, SqlStudyStore
from app.modules.study.models import NewDocument
from app.modules.study.providers import CompletionProvider


SAMPLE_MATERIAL = {
    "summary": "Plants turn sunlight into food.",
    "flashcards": [
        {"front": "Photosynthesis", "back": "Turning light into chemical energy"},
        {"front": "Chlorophyll", "back": "The green pigment that absorbs light"},
    ],
    "quiz": [
        {
            "id": 1,
            "question": "What do plants need for photosynthesis?",
            "options": ["Sunlight", "Sand", "Salt", "Smoke"],
            "correctAnswerIndex": 0,
            "explanation": "Light drives the reaction.",
        },
        {
            "id": 2,
            "question": "Which pigment absorbs light?",
            "options": ["Melanin", "Chlorophyll"],
            "correctAnswerIndex": 1,
            "explanation": "Chlorophyll is green.",
        },
    ],
}


class FakeProvider(CompletionProvider):
    """Returns canned completions and records every call."""

    name = "fake"

    def __init__(self, response: str | None = None, error: Exception | None = None):
        self.response = response if response is not None else json.dumps(SAMPLE_MATERIAL)
        self.error = error
        self.calls: list[tuple[str, str, str]] = []

    async def complete(self, system_prompt: str, user_text: str, model: str) -> str:
        self.calls.append((system_prompt, user_text, model))
        if self.error is not None:
            raise self.error
        return self.response


def b64(text: str | bytes) -> str:
    raw = text.encode("utf-8") if isinstance(text, str) else text
    return base64.b64encode(raw).decode("ascii")


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
async def json_store(tmp_path):
    store = JsonStudyStore(tmp_path / "json-db")
    await store.init()
    yield store
    await store.close()


@pytest.fixture
async def sql_store(tmp_path):
    db_settings = DatabaseSettings(
        DB_ADAPTER="sqlite", SQLITE_PATH=str(tmp_path / "study.db")
    )
    engine = create_engine(db_settings)
    await create_tables(engine)
    store = SqlStudyStore(engine, create_session_maker(engine))
    await store.init()
    yield store
    await store.close()
    await engine.dispose()


@pytest.fixture(params=["json", "sql"])
async def store(request, tmp_path):
    if request.param == "json":
        s = JsonStudyStore(tmp_path / "json-db")
        await s.init()
        yield s
        return

    db_settings = DatabaseSettings(
        DB_ADAPTER="sqlite", SQLITE_PATH=str(tmp_path / "study.db")
    )
    engine = create_engine(db_settings)
    await create_tables(engine)
    s = SqlStudyStore(engine, create_session_maker(engine))
    await s.init()
    yield s
    await engine.dispose()


@pytest.fixture
def owner_id() -> uuid.UUID:
    return uuid.uuid4()


async def make_document(
    store, owner: uuid.UUID, text: str = "Photosynthesis notes", mime_type: str = "text/plain"
):
    return await store.documents.create(
        NewDocument(
            owner_id=owner,
            file_name="notes.txt",
            mime_type=mime_type,
            file_data=b64(text),
        )
    )
