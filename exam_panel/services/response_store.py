"""
services/response_store.py

문제별 응답 상태 저장소 (화면 표시와 자동 저장의 단일 원천).

- 문제당 정확히 하나의 Response, 로드 시 빈 답으로 생성, 삭제 없음
- 모든 변경은 동기적이며 파생 값(응답 수, 진행률)에 즉시 반영
- 변경 후 구독자에게 전체 스냅샷을 전달 (자동 저장용)
- 제출 완료 후 lock() → 이후 변경은 ResponseLockedError
"""

from typing import Callable, List, Sequence

from exam_panel.errors import InvalidAnswerError, ResponseLockedError
from exam_panel.models.question_model import Question
from exam_panel.models.response_model import Response

MutationListener = Callable[[List[Response]], None]


class ResponseStore:
    def __init__(self, questions: Sequence[Question]):
        self._questions = tuple(questions)
        self._responses: List[Response] = [Response(question_id=q.id) for q in self._questions]
        self._listeners: List[MutationListener] = []
        self._locked = False

    # ── 조회 ─────────────────────────────────────────────────────────────────

    @property
    def total(self) -> int:
        return len(self._responses)

    @property
    def locked(self) -> bool:
        return self._locked

    @property
    def questions(self) -> tuple:
        return self._questions

    def question(self, index: int) -> Question:
        return self._questions[index]

    def response(self, index: int) -> Response:
        """index 위치의 응답 (복사본)."""
        return self._responses[index].model_copy()

    def answered_count(self) -> int:
        return sum(1 for r in self._responses if r.selected_answer)

    def review_count(self) -> int:
        return sum(1 for r in self._responses if r.marked_for_review)

    def progress_fraction(self) -> float:
        if not self._responses:
            return 0.0
        return self.answered_count() / len(self._responses)

    def snapshot(self) -> List[Response]:
        """현재 전체 응답의 복사본. 호출 시점의 상태를 고정한다."""
        return [r.model_copy() for r in self._responses]

    # ── 변경 ─────────────────────────────────────────────────────────────────

    def subscribe(self, listener: MutationListener) -> None:
        self._listeners.append(listener)

    def set_answer(self, index: int, label: str) -> None:
        """
        index 위치 문제의 답을 설정한다. 빈 라벨은 답 지우기.

        Raises:
            ResponseLockedError: 잠긴 저장소
            InvalidAnswerError:  해당 문제에 없는 보기 라벨
            IndexError:          범위를 벗어난 index
        """
        self._check_writable()
        question = self._question_at(index)
        label = (label or "").strip().upper()
        if label and label not in question.options:
            raise InvalidAnswerError(f"문제 {question.id}에 보기 '{label}'가 없습니다.")

        self._responses[index].selected_answer = label
        self._notify()

    def clear_answer(self, index: int) -> None:
        self.set_answer(index, "")

    def toggle_review(self, index: int) -> bool:
        """검토 표시를 뒤집고 새 값을 반환. 선택한 답은 건드리지 않는다."""
        self._check_writable()
        self._question_at(index)
        response = self._responses[index]
        response.marked_for_review = not response.marked_for_review
        self._notify()
        return response.marked_for_review

    def record_time(self, index: int, seconds: float) -> None:
        """
        문제별 체류 시간 누적 (참고용).
        값이 바뀌면 다른 변경과 똑같이 구독자에게 알린다. 제출 직전 정산도 자동 저장에 실린다.
        """
        if self._locked or seconds <= 0:
            return
        self._question_at(index)
        response = self._responses[index]
        updated = round(response.time_spent + seconds, 3)
        if updated == response.time_spent:
            return
        response.time_spent = updated
        self._notify()

    def lock(self) -> None:
        self._locked = True

    # ── 내부 ─────────────────────────────────────────────────────────────────

    def _check_writable(self) -> None:
        if self._locked:
            raise ResponseLockedError("제출이 완료되어 답안을 변경할 수 없습니다.")

    def _question_at(self, index: int) -> Question:
        if not 0 <= index < len(self._questions):
            raise IndexError(f"문제 index 범위 초과: {index}")
        return self._questions[index]

    def _notify(self) -> None:
        if not self._listeners:
            return
        for listener in self._listeners:
            listener(self.snapshot())
