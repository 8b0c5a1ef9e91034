import json

import pytest

from app.core.config import AISettings
from app.core.exceptions import ProviderConfigError, ResponseParseError
from app.modules.study.generator import SYSTEM_PROMPT, MaterialGenerator, to_study_material
from app.modules.study.models import GeneratedStudyMaterial, find_quiz_defects
from app.modules.study.providers import (
    CerebrasCompletionProvider,
    GoogleCompletionProvider,
    GroqCompletionProvider,
    OpenRouterCompletionProvider,
    get_provider,
)

from tests.conftest import SAMPLE_MATERIAL, FakeProvider


async def test_generate_parses_fenced_completion():
    provider = FakeProvider("```json\n" + json.dumps(SAMPLE_MATERIAL) + "\n```")
    generator = MaterialGenerator(provider, "llama-test")

    material = await generator.generate("Chapter 1: photosynthesis")

    assert material.summary == SAMPLE_MATERIAL["summary"]
    assert [c.front for c in material.flashcards] == ["Photosynthesis", "Chlorophyll"]
    assert material.quiz[1].correct_answer_index == 1

    system_prompt, user_text, model = provider.calls[0]
    assert system_prompt == SYSTEM_PROMPT
    assert user_text.endswith("Chapter 1: photosynthesis")
    assert model == "llama-test"


def test_system_prompt_asks_for_strict_json():
    assert "ONLY valid JSON" in SYSTEM_PROMPT
    assert "at least 10" in SYSTEM_PROMPT
    assert "15-20" in SYSTEM_PROMPT


async def test_provider_errors_propagate_unchanged():
    boom = ConnectionError("rate limited")
    generator = MaterialGenerator(FakeProvider(error=boom), "m")

    with pytest.raises(ConnectionError) as exc_info:
        await generator.generate("text")
    assert exc_info.value is boom


async def test_unparseable_completion_raises_parse_error():
    generator = MaterialGenerator(FakeProvider("Sorry, I cannot help with that."), "m")
    with pytest.raises(ResponseParseError):
        await generator.generate("text")


def test_wrong_section_types_are_dropped():
    material = to_study_material({"summary": "ok", "flashcards": "not a list", "quiz": {}})
    assert material.summary == "ok"
    assert material.flashcards is None
    assert material.quiz is None


def test_numeric_options_and_loose_fields_are_coerced():
    material = to_study_material(
        {
            "summary": 42,
            "flashcards": [{"front": 1, "back": 2.5}, "garbage"],
            "quiz": [
                {
                    "id": "q1",
                    "question": "2 + 2 = ?",
                    "options": [3, 4, 5, 6],
                    "correctAnswerIndex": "1",
                },
                {"question": "No answer given", "options": ["a", "b"]},
                {"question": "Bad options", "options": {"a": 1}, "correctAnswerIndex": 0},
            ],
        }
    )

    assert material.summary == "42"
    assert [(c.front, c.back) for c in material.flashcards] == [("1", "2.5")]
    assert len(material.quiz) == 2
    first, second = material.quiz
    assert first.options == ["3", "4", "5", "6"]
    assert first.correct_answer_index == 1
    assert first.id == 1
    assert second.correct_answer_index is None
    assert find_quiz_defects(material) == ["question 2: missing correctAnswerIndex"]


def test_missing_sections_are_allowed():
    material = to_study_material({"summary": "only a summary", "extra": True})
    assert material.summary == "only a summary"
    assert material.flashcards is None
    assert material.quiz is None


def test_missing_quiz_ids_are_numbered():
    material = to_study_material(
        {
            "quiz": [
                {"question": "Q1", "options": ["a", "b"], "correctAnswerIndex": 0},
                {"id": 7, "question": "Q2", "options": ["a", "b"], "correctAnswerIndex": 1},
                {"question": "Q3", "options": ["a", "b"], "correctAnswerIndex": 1},
            ]
        }
    )
    assert [q.id for q in material.quiz] == [1, 7, 3]


def test_quiz_defects_are_detected():
    material = GeneratedStudyMaterial.model_validate(
        {
            "quiz": [
                {"id": 1, "question": "ok", "options": ["a", "b"], "correctAnswerIndex": 1},
                {"id": 2, "question": "bad", "options": ["a", "b"], "correctAnswerIndex": 2},
                {"id": 3, "question": "thin", "options": ["a"], "correctAnswerIndex": 0},
            ]
        }
    )
    defects = find_quiz_defects(material)
    assert len(defects) == 2
    assert defects[0].startswith("question 2")
    assert defects[1].startswith("question 3")


async def test_defective_quiz_is_still_returned():
    payload = dict(SAMPLE_MATERIAL)
    payload["quiz"] = [
        {"id": 1, "question": "q", "options": ["a", "b"], "correctAnswerIndex": 5, "explanation": ""}
    ]
    generator = MaterialGenerator(FakeProvider(json.dumps(payload)), "m")

    material = await generator.generate("text")
    assert material.quiz[0].correct_answer_index == 5


@pytest.mark.parametrize(
    "name, cls",
    [
        ("groq", GroqCompletionProvider),
        ("cerebras", CerebrasCompletionProvider),
        ("openrouter", OpenRouterCompletionProvider),
        ("GOOGLE", GoogleCompletionProvider),
    ],
)
def test_get_provider_selects_backend(name, cls):
    assert isinstance(get_provider(AISettings(AI_PROVIDER=name)), cls)


def test_unknown_provider_is_rejected():
    with pytest.raises(ProviderConfigError):
        get_provider(AISettings(AI_PROVIDER="skynet"))


def test_missing_api_key_is_a_config_error():
    provider = GroqCompletionProvider(AISettings(GROQ_API_KEY=None))
    with pytest.raises(ProviderConfigError):
        provider._api_key()


def test_timeout_is_only_sent_when_configured():
    unbounded = GroqCompletionProvider(AISettings(AI_TIMEOUT_SECONDS=None))
    assert "timeout" not in unbounded._model_settings()

    bounded = GroqCompletionProvider(
        AISettings(AI_TIMEOUT_SECONDS=45, AI_TEMPERATURE=0.1, AI_MAX_TOKENS=1000)
    )
    model_settings = bounded._model_settings()
    assert model_settings["timeout"] == 45
    assert model_settings["temperature"] == 0.1
    assert model_settings["max_tokens"] == 1000
