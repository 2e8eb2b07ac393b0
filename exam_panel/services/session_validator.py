"""
services/session_validator.py

세션 토큰 → 세션 정보 확인.
토큰이 비어 있으면 네트워크 호출 없이 즉시 실패한다.
"""

import logging

from exam_panel.errors import MissingTokenError, SessionInvalidError
from exam_panel.models.session_state import SessionRecord, SessionStatus
from exam_panel.services.center_client import ExamBackend

logger = logging.getLogger(__name__)


class SessionValidator:
    def __init__(self, backend: ExamBackend):
        self._backend = backend

    async def validate(self, token: str | None) -> SessionRecord:
        """
        토큰을 세션 정보로 확인한다.

        Raises:
            MissingTokenError:     토큰 없음 (센터 호출 안 함)
            SessionNotFoundError:  알 수 없는 토큰
            SessionExpiredError:   만료된 세션
            SessionInvalidError:   INVALID 상태 세션
            CenterUnavailableError: 센터 서버 연결 불가
        """
        if not token or not token.strip():
            raise MissingTokenError("세션 토큰이 제공되지 않았습니다.")

        record = await self._backend.validate(token.strip())
        if record.status is SessionStatus.INVALID:
            raise SessionInvalidError("응시할 수 없는 세션입니다.")

        if record.status is SessionStatus.IN_PROGRESS and record.deadline is None:
            raise SessionInvalidError("시험 시작 시각이 없는 진행 중 세션입니다.")

        logger.info(
            f"세션 확인: {record.candidate.roll_number or '-'} / {record.exam.title or '-'} "
            f"→ {record.status.value}"
        )
        return record
