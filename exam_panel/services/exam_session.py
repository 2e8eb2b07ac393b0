"""
services/exam_session.py

수험 세션 컨트롤러 — 세션 확인부터 최종 제출까지의 흐름을 묶는다.

흐름:
  세션 확인 → (진행 중이면) 문제 로드 → 응답 저장소 생성 → 카운트다운 시작
  → 수험자 조작이 저장소를 변경 → 변경마다 자동 저장
  → 수험자 제출 또는 시간 종료 → 최종 제출 → 종료 화면

모든 메서드는 하나의 asyncio 이벤트 루프에서 호출되어야 한다.
실패는 예외로 화면에 올리지 않고 phase + error_message 로 변환한다.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Any, Callable, Coroutine, List, Optional, Set

from pydantic import BaseModel, ConfigDict

from config import (
    ALLOW_DEMO_QUESTIONS,
    LOW_TIME_THRESHOLD_SECONDS,
    SUBMIT_ON_LEAVE,
    SUBMIT_RETRY_SECONDS,
    TICK_INTERVAL_SECONDS,
)
from exam_panel.errors import (
    CenterUnavailableError,
    MissingTokenError,
    QuestionLoadError,
    ResponseLockedError,
    SessionResolutionError,
)
from exam_panel.models.question_model import Question
from exam_panel.models.response_model import Response
from exam_panel.models.session_state import SessionRecord, SessionStatus
from exam_panel.services.autosave import AutosaveDispatcher
from exam_panel.services.center_client import ExamBackend
from exam_panel.services.countdown import CountdownController, CountdownState, Scheduler, TimerHandle
from exam_panel.services.navigator import Navigator, PaletteCell
from exam_panel.services.question_loader import QuestionSetLoader
from exam_panel.services.response_store import ResponseStore
from exam_panel.services.session_validator import SessionValidator
from exam_panel.services.submission import SubmissionCoordinator, SubmissionState, SubmitTrigger

logger = logging.getLogger(__name__)


class PanelPhase(str, Enum):
    LOADING = "LOADING"
    MISSING_TOKEN = "MISSING_TOKEN"      # 종료: 토큰 없음
    SESSION_ERROR = "SESSION_ERROR"      # 종료: 알 수 없는/무효/만료 세션
    OFFLINE = "OFFLINE"                  # 센터 연결 불가, 재확인 가능
    WAITING = "WAITING"                  # 감독관의 시험 시작 대기
    LOAD_ERROR = "LOAD_ERROR"            # 문제 로드 실패, 수험자가 재시도
    IN_PROGRESS = "IN_PROGRESS"
    SUBMIT_FAILED = "SUBMIT_FAILED"      # 제출 실패, 재시도 가능
    SUBMITTED = "SUBMITTED"              # 종료: 제출 완료
    CLOSED = "CLOSED"                    # 화면 이탈


class PanelView(BaseModel):
    """화면 렌더링용 스냅샷. 뷰는 이 값만 읽는다."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    phase: PanelPhase
    error_message: str = ""
    record: Optional[SessionRecord] = None
    question: Optional[Question] = None
    response: Optional[Response] = None
    index: int = 0
    total: int = 0
    palette: List[PaletteCell] = []
    summary: dict = {}
    remaining: float = 0.0
    low_time: bool = False
    interactive: bool = False
    submitting: bool = False
    expired: bool = False


class ExamSession:
    """
    Args:
        token:              세션 토큰
        backend:            센터 서버 연산 (CenterClient 또는 테스트용 가짜)
        clock:              현재 시각 함수 (Unix timestamp)
        scheduler:          call_later 스케줄러 (기본: 실행 중인 이벤트 루프)
        allow_demo:         데모 문제 허용 여부
        submit_on_leave:    화면 이탈 시 자동 제출 여부
    """

    def __init__(
        self,
        token: Optional[str],
        backend: ExamBackend,
        clock: Callable[[], float] = time.time,
        scheduler: Optional[Scheduler] = None,
        allow_demo: bool = ALLOW_DEMO_QUESTIONS,
        submit_on_leave: bool = SUBMIT_ON_LEAVE,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        low_time_threshold: float = LOW_TIME_THRESHOLD_SECONDS,
        submit_retry_seconds: float = SUBMIT_RETRY_SECONDS,
    ):
        self.token = (token or "").strip()
        self._backend = backend
        self._clock = clock
        self._scheduler = scheduler
        self._submit_on_leave = submit_on_leave
        self._tick_interval = tick_interval
        self._low_time_threshold = low_time_threshold
        self._submit_retry_seconds = submit_retry_seconds

        self._validator = SessionValidator(backend)
        self._loader = QuestionSetLoader(backend, allow_demo=allow_demo)

        self.phase = PanelPhase.LOADING
        self.error_message = ""
        self.record: Optional[SessionRecord] = None
        self.store: Optional[ResponseStore] = None
        self.navigator: Optional[Navigator] = None
        self.autosave: Optional[AutosaveDispatcher] = None
        self.countdown: Optional[CountdownController] = None
        self.coordinator: Optional[SubmissionCoordinator] = None

        self._tasks: Set[asyncio.Task] = set()
        self._retry_handle: Optional[TimerHandle] = None

    # ── 상태 조회 ────────────────────────────────────────────────────────────

    @property
    def expired(self) -> bool:
        return self.countdown is not None and self.countdown.state is CountdownState.EXPIRED

    @property
    def submitting(self) -> bool:
        return self.coordinator is not None and self.coordinator.state is SubmissionState.SUBMITTING

    @property
    def interactive(self) -> bool:
        """답안 변경 가능 여부."""
        return (
            self.phase in (PanelPhase.IN_PROGRESS, PanelPhase.SUBMIT_FAILED)
            and self.store is not None
            and not self.store.locked
            and not self.expired
            and not self.submitting
        )

    def remaining(self) -> float:
        if self.countdown is None:
            return 0.0
        return self.countdown.remaining()

    # ── 세션 확인 / 시작 ─────────────────────────────────────────────────────

    async def open(self) -> PanelPhase:
        """세션을 확인하고 상태에 맞는 phase로 진입한다."""
        try:
            record = await self._validator.validate(self.token)
        except MissingTokenError as e:
            self._fail(PanelPhase.MISSING_TOKEN, str(e))
            return self.phase
        except SessionResolutionError as e:
            logger.warning(f"세션 확인 실패: {e}")
            self._fail(PanelPhase.SESSION_ERROR, "세션을 확인할 수 없습니다. 감독관에게 문의하세요.")
            return self.phase
        except CenterUnavailableError as e:
            logger.warning(f"센터 연결 불가: {e}")
            self._fail(PanelPhase.OFFLINE, "시험 센터 서버에 연결할 수 없습니다.")
            return self.phase

        await self._enter(record)
        return self.phase

    async def refresh(self) -> PanelPhase:
        """대기/연결 불가 상태에서 세션을 다시 확인 (대기실 폴링)."""
        if self.phase not in (PanelPhase.WAITING, PanelPhase.OFFLINE, PanelPhase.LOADING):
            return self.phase
        if self.phase is PanelPhase.WAITING:
            try:
                record = await self._validator.validate(self.token)
            except CenterUnavailableError as e:
                logger.warning(f"대기 중 센터 연결 불가: {e}")
                return self.phase
            except SessionResolutionError as e:
                logger.warning(f"대기 중 세션 무효화: {e}")
                self._fail(PanelPhase.SESSION_ERROR, "세션을 확인할 수 없습니다. 감독관에게 문의하세요.")
                return self.phase
            await self._enter(record)
            return self.phase
        return await self.open()

    async def retry_load(self) -> PanelPhase:
        """문제 로드 실패 후 수험자가 누르는 재시도."""
        if self.phase is PanelPhase.LOAD_ERROR and self.record is not None:
            await self._start(self.record)
        return self.phase

    async def _enter(self, record: SessionRecord) -> None:
        self.record = record
        status = record.status
        if status is SessionStatus.WAITING:
            self.phase = PanelPhase.WAITING
        elif status is SessionStatus.SUBMITTED:
            self.phase = PanelPhase.SUBMITTED
        elif status is SessionStatus.IN_PROGRESS:
            await self._start(record)
        else:
            self._fail(PanelPhase.SESSION_ERROR, "응시할 수 없는 세션입니다.")

    async def _start(self, record: SessionRecord) -> None:
        try:
            questions = await self._loader.load(record)
        except QuestionLoadError as e:
            self._fail(PanelPhase.LOAD_ERROR, str(e))
            return

        token = record.session.session_token or self.token
        self.store = ResponseStore(questions)
        self.navigator = Navigator(self.store, clock=self._clock)
        self.autosave = AutosaveDispatcher(self._backend, token)
        self.store.subscribe(self.autosave.on_mutation)
        self.coordinator = SubmissionCoordinator(
            self._backend,
            token,
            self.store,
            on_submitted=self._on_submitted,
            on_failed=self._on_submit_failed,
            before_submit=self.navigator.settle_time,
        )
        self.countdown = CountdownController(
            record.deadline,
            self._get_scheduler(),
            on_expire=self._on_expire,
            clock=self._clock,
            tick_interval=self._tick_interval,
            low_time_threshold=self._low_time_threshold,
        )
        self.phase = PanelPhase.IN_PROGRESS
        self.error_message = ""
        self.countdown.start()

    # ── 수험자 조작 ──────────────────────────────────────────────────────────

    def select_answer(self, label: str) -> None:
        self._require_interactive()
        self.store.set_answer(self.navigator.current_index, label)

    def clear_answer(self) -> None:
        self.select_answer("")

    def toggle_review(self) -> bool:
        self._require_interactive()
        return self.store.toggle_review(self.navigator.current_index)

    def go_to(self, index: int) -> int:
        if self.navigator is None:
            return 0
        return self.navigator.go_to(index)

    def next_question(self) -> int:
        return self.go_to(self.navigator.current_index + 1) if self.navigator else 0

    def previous_question(self) -> int:
        return self.go_to(self.navigator.current_index - 1) if self.navigator else 0

    def submit_summary(self) -> dict:
        """제출 확인 단계에 보여줄 현황."""
        if self.navigator is None:
            return {}
        return self.navigator.summary()

    async def submit(self, confirmed: bool = False) -> bool:
        """수험자 제출 (확인 단계를 거친 뒤 confirmed=True)."""
        if self.coordinator is None or self.phase not in (PanelPhase.IN_PROGRESS, PanelPhase.SUBMIT_FAILED):
            return False
        return await self._submit(SubmitTrigger.MANUAL, confirmed=confirmed)

    async def leave(self) -> None:
        """
        화면 이탈 (언마운트).
        타이머 해제 → (설정 시) 이탈 제출 → 진행 중인 자동 저장 대기 → 응답 저장소 폐기
        """
        if self.phase is PanelPhase.CLOSED:
            return
        if self.countdown is not None:
            self.countdown.stop()
        self._cancel_retry()

        if self._submit_on_leave and self.phase in (PanelPhase.IN_PROGRESS, PanelPhase.SUBMIT_FAILED):
            await self._submit(SubmitTrigger.NAVIGATION)

        await self.settle()
        if self.autosave is not None:
            self.autosave.close()

        if self.phase is not PanelPhase.SUBMITTED:
            self.phase = PanelPhase.CLOSED
        self.store = None
        self.navigator = None
        logger.info(f"수험 화면 종료 ({self.phase.value})")

    async def settle(self) -> None:
        """진행 중인 제출/자동 저장 태스크가 모두 끝날 때까지 대기."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        if self.autosave is not None:
            await self.autosave.flush()

    # ── 화면 스냅샷 ──────────────────────────────────────────────────────────

    def view(self) -> PanelView:
        if self.navigator is None or self.store is None:
            return PanelView(phase=self.phase, error_message=self.error_message, record=self.record)
        return PanelView(
            phase=self.phase,
            error_message=self.error_message,
            record=self.record,
            question=self.navigator.current_question,
            response=self.navigator.current_response,
            index=self.navigator.current_index,
            total=self.navigator.total,
            palette=self.navigator.palette(),
            summary=self.navigator.summary(),
            remaining=self.remaining(),
            low_time=self.countdown.is_low_time if self.countdown else False,
            interactive=self.interactive,
            submitting=self.submitting,
            expired=self.expired,
        )

    # ── 내부 ─────────────────────────────────────────────────────────────────

    def _get_scheduler(self) -> Scheduler:
        if self._scheduler is None:
            self._scheduler = asyncio.get_running_loop()
        return self._scheduler

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _fail(self, phase: PanelPhase, message: str) -> None:
        self.phase = phase
        self.error_message = message

    def _require_interactive(self) -> None:
        if not self.interactive:
            raise ResponseLockedError("지금은 답안을 변경할 수 없습니다.")

    async def _submit(self, trigger: SubmitTrigger, confirmed: bool = False) -> bool:
        if self.coordinator is None or self.phase is PanelPhase.SUBMITTED:
            return False
        return await self.coordinator.submit(trigger, confirmed=confirmed)

    def _on_expire(self) -> None:
        self._spawn(self._submit(SubmitTrigger.TIMEOUT))

    def _on_submitted(self, trigger: SubmitTrigger) -> None:
        if self.countdown is not None:
            self.countdown.stop()
        self._cancel_retry()
        if self.autosave is not None:
            self.autosave.close()
        if self.record is not None:
            self.record.session.status = SessionStatus.SUBMITTED
        self.phase = PanelPhase.SUBMITTED
        self.error_message = ""

    def _on_submit_failed(self, trigger: SubmitTrigger, error: Exception) -> None:
        self._fail(PanelPhase.SUBMIT_FAILED, "답안 제출에 실패했습니다. 다시 제출해 주세요.")
        if self.expired and self._retry_handle is None:
            # 시간 종료 후에는 다음 타이머 확인 때 자동으로 다시 제출
            self._retry_handle = self._get_scheduler().call_later(
                self._submit_retry_seconds, self._retry_timeout_submit
            )

    def _retry_timeout_submit(self) -> None:
        self._retry_handle = None
        if self.phase is PanelPhase.SUBMIT_FAILED:
            logger.info("시간 종료 제출 재시도")
            self._spawn(self._submit(SubmitTrigger.TIMEOUT))

    def _cancel_retry(self) -> None:
        if self._retry_handle is not None:
            self._retry_handle.cancel()
            self._retry_handle = None
