"""
services/question_loader.py

진행 중 세션의 문제 목록을 한 번만 불러온다.
문제 순서가 곧 응답/팔레트의 주소 체계이므로 세션 동안 순서와 구성이 고정된다.
"""

import logging
from typing import Optional, Tuple

from exam_panel.errors import CenterError, QuestionLoadError
from exam_panel.models.question_model import Question
from exam_panel.models.session_state import SessionRecord, SessionStatus
from exam_panel.services.center_client import ExamBackend

logger = logging.getLogger(__name__)


class QuestionSetLoader:
    """
    Args:
        backend:    센터 서버 연산
        allow_demo: 서버가 데모 문제를 보낼 때 허용할지 여부 (개발용)
    """

    def __init__(self, backend: ExamBackend, allow_demo: bool = False):
        self._backend = backend
        self._allow_demo = allow_demo
        self._questions: Optional[Tuple[Question, ...]] = None

    @property
    def loaded(self) -> bool:
        return self._questions is not None

    async def load(self, record: SessionRecord) -> Tuple[Question, ...]:
        """
        문제 목록을 반환한다. 이미 불러왔으면 같은 튜플을 그대로 돌려준다.

        Raises:
            QuestionLoadError: 시작 전 세션, 네트워크/형식 오류, 빈 목록, 중복 ID,
                               허용되지 않은 데모 문제
        """
        if self._questions is not None:
            return self._questions

        if record.status is not SessionStatus.IN_PROGRESS:
            raise QuestionLoadError(f"시험이 진행 중이 아닙니다 ({record.status.value}).")

        try:
            questions = await self._backend.load_questions(record.session.session_token)
        except CenterError as e:
            logger.error(f"문제 조회 실패: {e}")
            raise QuestionLoadError("문제를 불러오지 못했습니다. 다시 시도해 주세요.") from e

        if not questions:
            raise QuestionLoadError("문제 목록이 비어 있습니다.")

        ids = [q.id for q in questions]
        if len(set(ids)) != len(ids):
            raise QuestionLoadError("문제 ID가 중복되었습니다.")

        if any(q.is_demo for q in questions) and not self._allow_demo:
            logger.error("데모 문제가 실제 시험 세션에 전달됨 — 거부")
            raise QuestionLoadError("시험 문제가 준비되지 않았습니다. 감독관에게 문의하세요.")

        self._questions = tuple(questions)
        logger.info(f"문제 {len(self._questions)}개 로드 완료")
        return self._questions
