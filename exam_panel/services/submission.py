"""
services/submission.py

최종 제출 — 세션의 종료 전환.

상태: IDLE → SUBMITTING → SUBMITTED | FAILED (FAILED → SUBMITTING 재시도 가능)

- 수동 제출은 확인 단계 필수, 시간 종료 제출은 확인 없이 즉시
- 제출 호출이 진행 중이거나 성공한 뒤에는 어떤 경로로도 두 번째 호출을 보내지 않음
  (수동 제출과 시간 종료가 같은 tick에 겹쳐도 호출은 한 번)
- 가드 확인과 SUBMITTING 전환은 첫 await 이전에 동기적으로 수행
- 실패 시 가드를 풀어 재시도를 허용하고, 세션을 제출 완료로 표시하지 않음
"""

import logging
from enum import Enum
from typing import Callable, List, Optional

from exam_panel.errors import CenterError, ConfirmationRequiredError
from exam_panel.models.response_model import Response
from exam_panel.services.center_client import ExamBackend
from exam_panel.services.response_store import ResponseStore

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    IDLE = "IDLE"
    SUBMITTING = "SUBMITTING"
    SUBMITTED = "SUBMITTED"
    FAILED = "FAILED"


class SubmitTrigger(str, Enum):
    MANUAL = "MANUAL"
    TIMEOUT = "TIMEOUT"
    NAVIGATION = "NAVIGATION"


class SubmissionCoordinator:
    """
    Args:
        backend:      센터 서버 연산
        token:        세션 토큰
        store:        응답 저장소 (제출 시점 스냅샷의 원천)
        on_submitted: 제출 성공 시 호출 (trigger)
        on_failed:    제출 실패 시 호출 (trigger, error)
        before_submit: 스냅샷 직전에 호출 (체류 시간 정산 등)
    """

    def __init__(
        self,
        backend: ExamBackend,
        token: str,
        store: ResponseStore,
        on_submitted: Optional[Callable[[SubmitTrigger], None]] = None,
        on_failed: Optional[Callable[[SubmitTrigger, Exception], None]] = None,
        before_submit: Optional[Callable[[], None]] = None,
    ):
        self._backend = backend
        self._token = token
        self._store = store
        self._on_submitted = on_submitted
        self._on_failed = on_failed
        self._before_submit = before_submit

        self.state = SubmissionState.IDLE
        self.attempts = 0
        self.trigger: Optional[SubmitTrigger] = None
        self.last_error: Optional[Exception] = None
        self.last_payload: Optional[List[Response]] = None

    @property
    def guarded(self) -> bool:
        """제출 호출이 진행 중이거나 이미 성공했으면 True."""
        return self.state in (SubmissionState.SUBMITTING, SubmissionState.SUBMITTED)

    async def submit(self, trigger: SubmitTrigger, confirmed: bool = False) -> bool:
        """
        최종 제출을 시도한다.

        Returns:
            True  — 이번 호출로 제출 완료
            False — 가드에 막혀 무시되었거나 제출 실패 (state로 구분)

        Raises:
            ConfirmationRequiredError: 수동 제출인데 confirmed=False
        """
        if trigger is SubmitTrigger.MANUAL and not confirmed:
            raise ConfirmationRequiredError("제출 확인이 필요합니다.")

        if self.guarded:
            logger.warning(f"중복 제출 무시 ({trigger.value}, 현재 상태 {self.state.value})")
            return False

        self.state = SubmissionState.SUBMITTING
        self.trigger = trigger
        self.attempts += 1
        try:
            if self._before_submit is not None:
                self._before_submit()
            payload = self._store.snapshot()
            self.last_payload = payload
            logger.info(f"최종 제출 시도 #{self.attempts} ({trigger.value}, {len(payload)}문항)")
            await self._backend.submit(self._token, payload, len(payload))
        except Exception as e:
            # 예외 종류와 무관하게 FAILED 로 전환 (가드 해제)
            self.state = SubmissionState.FAILED
            self.last_error = e
            logger.error(f"최종 제출 실패 ({trigger.value}): {e}", exc_info=not isinstance(e, CenterError))
            if self._on_failed is not None:
                self._on_failed(trigger, e)
            return False

        self.state = SubmissionState.SUBMITTED
        self.last_error = None
        self._store.lock()
        logger.info(f"최종 제출 완료 ({trigger.value})")
        if self._on_submitted is not None:
            self._on_submitted(trigger)
        return True
