"""
services/navigator.py

문제 번호 팔레트 / 이동 표시 계층.
ResponseStore 위의 읽기 전용 뷰이며, 스스로 가진 상태는 "현재 문제 index" 뿐이다.
현재 index를 바꾸는 유일한 컴포넌트.
"""

import time
from enum import Enum
from typing import Callable, List

from pydantic import BaseModel, ConfigDict

from exam_panel.models.question_model import Question
from exam_panel.models.response_model import Response
from exam_panel.services.response_store import ResponseStore


class QuestionStatus(str, Enum):
    LOCKED = "LOCKED"                        # 제출 완료 (모든 상태보다 우선)
    ANSWERED = "ANSWERED"
    MARKED_FOR_REVIEW = "MARKED_FOR_REVIEW"
    UNANSWERED = "UNANSWERED"


class PaletteCell(BaseModel):
    model_config = ConfigDict(frozen=True)

    index: int
    number: int
    question_id: int
    status: QuestionStatus
    is_current: bool
    marked_for_review: bool


class Navigator:
    """
    Args:
        store: 응답 저장소
        clock: 체류 시간 계산용 시각 함수
    """

    def __init__(self, store: ResponseStore, clock: Callable[[], float] = time.time):
        self._store = store
        self._clock = clock
        self._index = 0
        self._focus_since = clock()

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def total(self) -> int:
        return self._store.total

    @property
    def current_question(self) -> Question:
        return self._store.question(self._index)

    @property
    def current_response(self) -> Response:
        return self._store.response(self._index)

    @property
    def is_first(self) -> bool:
        return self._index == 0

    @property
    def is_last(self) -> bool:
        return self._index >= self.total - 1

    # ── 이동 ─────────────────────────────────────────────────────────────────

    def go_to(self, index: int) -> int:
        """index로 이동 ([0, total-1] 범위로 보정). 이동 전 문제에 체류 시간을 누적한다."""
        target = max(0, min(index, self.total - 1))
        if target != self._index:
            self.settle_time()
            self._index = target
        return self._index

    def next(self) -> int:
        return self.go_to(self._index + 1)

    def previous(self) -> int:
        return self.go_to(self._index - 1)

    def settle_time(self) -> None:
        """현재 문제에 머문 시간을 저장소에 반영하고 기준 시각을 갱신."""
        now = self._clock()
        self._store.record_time(self._index, now - self._focus_since)
        self._focus_since = now

    # ── 표시 ─────────────────────────────────────────────────────────────────

    def status_of(self, index: int) -> QuestionStatus:
        if self._store.locked:
            return QuestionStatus.LOCKED
        response = self._store.response(index)
        if response.selected_answer:
            return QuestionStatus.ANSWERED
        if response.marked_for_review:
            return QuestionStatus.MARKED_FOR_REVIEW
        return QuestionStatus.UNANSWERED

    def palette(self) -> List[PaletteCell]:
        cells = []
        for index, question in enumerate(self._store.questions):
            cells.append(
                PaletteCell(
                    index=index,
                    number=index + 1,
                    question_id=question.id,
                    status=self.status_of(index),
                    is_current=index == self._index,
                    marked_for_review=self._store.response(index).marked_for_review,
                )
            )
        return cells

    def summary(self) -> dict:
        """진행 현황 (사이드바/제출 확인용)."""
        answered = self._store.answered_count()
        return {
            "total": self.total,
            "answered": answered,
            "unanswered": self.total - answered,
            "marked": self._store.review_count(),
            "progress": self._store.progress_fraction(),
        }
