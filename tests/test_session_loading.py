import asyncio

import pytest

from conftest import FakeBackend, make_questions, make_record
from exam_panel.errors import (
    CenterResponseError,
    MissingTokenError,
    QuestionLoadError,
    SessionInvalidError,
)
from exam_panel.models.question_model import Question
from exam_panel.models.session_state import ExamInfo, SessionRecord, SessionStatus
from exam_panel.services.question_loader import QuestionSetLoader
from exam_panel.services.session_validator import SessionValidator


# ── 세션 확인 ────────────────────────────────────────────────────────────────

def test_validator_strips_token(backend):
    record = asyncio.run(SessionValidator(backend).validate("  abc "))
    assert backend.validate_calls == ["abc"]
    assert record.status is SessionStatus.IN_PROGRESS
    assert record.candidate.roll_number == "R-1001"


def test_validator_rejects_blank_token_locally(backend):
    with pytest.raises(MissingTokenError):
        asyncio.run(SessionValidator(backend).validate(" "))
    assert backend.validate_calls == []


def test_in_progress_without_start_time_is_invalid():
    record = make_record()
    record.session.exam_start_time = None
    backend = FakeBackend(record)

    with pytest.raises(SessionInvalidError):
        asyncio.run(SessionValidator(backend).validate("abc"))


def test_unknown_status_maps_to_invalid():
    record = SessionRecord.model_validate({"session": {"sessionToken": "x", "status": "TERMINATED"}})
    assert record.status is SessionStatus.INVALID

    with pytest.raises(SessionInvalidError):
        asyncio.run(SessionValidator(FakeBackend(record)).validate("x"))


def test_deadline_is_start_plus_duration():
    record = make_record(duration_seconds=90)
    start = record.session.exam_start_time.timestamp()
    assert record.deadline == start + 90
    assert make_record("WAITING").deadline is None


def test_duration_minutes_fallback():
    assert ExamInfo.model_validate({"title": "t", "duration": 45}).duration_seconds == 2700
    assert ExamInfo.model_validate({"duration": 45, "durationSeconds": 10}).duration_seconds == 10


# ── 문제 로드 ────────────────────────────────────────────────────────────────

def test_questions_are_loaded_once(backend):
    loader = QuestionSetLoader(backend)

    async def scenario():
        first = await loader.load(backend.record)
        second = await loader.load(backend.record)
        return first, second

    first, second = asyncio.run(scenario())
    assert first is second
    assert [q.id for q in first] == [1, 2]
    assert backend.load_calls == 1
    assert loader.loaded


def test_load_requires_in_progress():
    backend = FakeBackend(make_record("WAITING"), make_questions(2))
    with pytest.raises(QuestionLoadError):
        asyncio.run(QuestionSetLoader(backend).load(backend.record))
    assert backend.load_calls == 0


def test_failed_load_is_not_cached(backend):
    backend.load_errors.append(CenterResponseError("bad", 403))
    loader = QuestionSetLoader(backend)

    with pytest.raises(QuestionLoadError):
        asyncio.run(loader.load(backend.record))
    assert not loader.loaded

    assert len(asyncio.run(loader.load(backend.record))) == 2


@pytest.mark.parametrize(
    "questions",
    [
        [],
        make_questions(2) + make_questions(1),
    ],
    ids=["empty", "duplicate-ids"],
)
def test_unusable_question_sets_are_rejected(questions):
    backend = FakeBackend(make_record(), questions)
    with pytest.raises(QuestionLoadError):
        asyncio.run(QuestionSetLoader(backend).load(backend.record))


def test_demo_questions_refused_unless_allowed():
    demo = [q.model_copy(update={"is_demo": True}) for q in make_questions(2)]
    backend = FakeBackend(make_record(), demo)

    with pytest.raises(QuestionLoadError):
        asyncio.run(QuestionSetLoader(backend).load(backend.record))

    loaded = asyncio.run(QuestionSetLoader(backend, allow_demo=True).load(backend.record))
    assert all(q.is_demo for q in loaded)


def test_question_needs_two_options():
    with pytest.raises(ValueError):
        Question(id=1, question_text="?", option_a="only")

    question = Question.model_validate({"id": 3, "questionText": "?", "optionA": "x", "optionB": "y", "optionD": " "})
    assert question.labels == ["A", "B"]
    assert question.options == {"A": "x", "B": "y"}
