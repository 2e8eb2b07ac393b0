"""
tests/conftest.py — 공용 가짜 객체와 fixture

- ManualClock / ManualScheduler : 벽시계와 call_later 타이머를 수동으로 진행
- FakeBackend                   : 센터 서버 4개 연산을 기록하고 실패를 주입
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

import pytest

import api.session as center_store
from exam_panel.models.question_model import Question
from exam_panel.models.response_model import Response
from exam_panel.models.session_state import SessionRecord

START = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class ManualClock:
    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now


class _Timer:
    def __init__(self, due: float, seq: int, callback: Callable[..., Any], args: tuple):
        self.due = due
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """call_later 만 흉내내는 스케줄러. advance()로 시간을 흘려 보낸다."""

    def __init__(self, clock: ManualClock):
        self.clock = clock
        self._timers: List[_Timer] = []
        self._seq = 0

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> _Timer:
        self._seq += 1
        timer = _Timer(self.clock.now + delay, self._seq, callback, args)
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def advance(self, seconds: float) -> None:
        target = self.clock.now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self._timers.remove(timer)
            self.clock.now = max(self.clock.now, timer.due)
            timer.callback(*timer.args)
        self._timers = [t for t in self._timers if not t.cancelled]
        self.clock.now = target

    def tick(self, count: int = 1, interval: float = 1.0) -> None:
        for _ in range(count):
            self.advance(interval)


class FakeBackend:
    """센터 서버 가짜 구현. 모든 호출을 기록한다."""

    def __init__(self, record: Optional[SessionRecord] = None, questions: Optional[List[Question]] = None):
        self.record = record
        self.questions = questions or []

        self.validate_calls: List[str] = []
        self.load_calls = 0
        self.saves: List[List[Response]] = []
        self.submits: List[tuple] = []

        self.validate_error: Optional[Exception] = None
        self.load_errors: List[Exception] = []
        self.save_errors: List[Exception] = []
        self.submit_errors: List[Exception] = []

    async def validate(self, token: str) -> SessionRecord:
        self.validate_calls.append(token)
        await asyncio.sleep(0)
        if self.validate_error is not None:
            raise self.validate_error
        return self.record.model_copy(deep=True)

    async def load_questions(self, token: str) -> List[Question]:
        self.load_calls += 1
        await asyncio.sleep(0)
        if self.load_errors:
            raise self.load_errors.pop(0)
        return list(self.questions)

    async def save_responses(self, token: str, responses) -> None:
        self.saves.append([r.model_copy() for r in responses])
        await asyncio.sleep(0)
        if self.save_errors:
            raise self.save_errors.pop(0)

    async def submit(self, token: str, responses, total_questions: int) -> None:
        self.submits.append(([r.model_copy() for r in responses], total_questions))
        await asyncio.sleep(0)
        if self.submit_errors:
            raise self.submit_errors.pop(0)


def make_questions(count: int) -> List[Question]:
    return [
        Question(
            id=i,
            question_text=f"Question {i}",
            option_a=f"{i}-A", option_b=f"{i}-B", option_c=f"{i}-C", option_d=f"{i}-D",
        )
        for i in range(1, count + 1)
    ]


def make_record(status: str = "IN_PROGRESS", duration_seconds: int = 60, token: str = "abc") -> SessionRecord:
    return SessionRecord.model_validate({
        "session": {
            "sessionToken": token,
            "status": status,
            "examStartTime": START.isoformat() if status != "WAITING" else None,
            "seatNumber": "A-01",
        },
        "candidate": {"name": "Asha Verma", "rollNumber": "R-1001"},
        "exam": {"title": "Center Exam", "durationSeconds": duration_seconds},
    })


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START.timestamp())


@pytest.fixture
def scheduler(clock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend(make_record(), make_questions(2))


@pytest.fixture
def center():
    """센터 서버 인메모리 저장소 초기화."""
    center_store.reset()
    yield center_store
    center_store.reset()
