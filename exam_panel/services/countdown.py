"""
services/countdown.py

남은 시험 시간 카운트다운.

상태: NOT_STARTED → RUNNING → EXPIRED (화면 종료 시 STOPPED)

- 마감 시각(deadline)은 시작 시 한 번만 고정
- 매 tick마다 remaining = max(0, deadline - now()) 로 다시 계산
  (remaining -= 1 누적 방식은 탭 일시정지/틱 누락 시 오차가 생김)
- 0이 되면 on_expire를 한 번 호출 → 확인 없는 자동 제출의 유일한 경로
- 스케줄러는 call_later(delay, callback) 만 있으면 됨 (asyncio 이벤트 루프 또는 테스트용 가짜)
"""

import logging
import time
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from config import LOW_TIME_THRESHOLD_SECONDS, TICK_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class CountdownState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    EXPIRED = "EXPIRED"
    STOPPED = "STOPPED"


def format_remaining(seconds: float) -> str:
    """남은 시간을 HH:MM:SS 로 표시."""
    total = max(0, int(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


class CountdownController:
    """
    Args:
        deadline:           마감 시각 (clock과 같은 기준의 Unix timestamp)
        scheduler:          call_later를 제공하는 스케줄러
        on_expire:          0 도달 시 한 번 호출되는 콜백
        clock:              현재 시각 함수 (기본 time.time)
        on_tick:            매 tick마다 남은 시간(초)을 받는 콜백 (선택)
        tick_interval:      tick 간격 (초)
        low_time_threshold: 경고 표시 기준 (초)
    """

    def __init__(
        self,
        deadline: float,
        scheduler: Scheduler,
        on_expire: Callable[[], None],
        clock: Callable[[], float] = time.time,
        on_tick: Optional[Callable[[float], None]] = None,
        tick_interval: float = TICK_INTERVAL_SECONDS,
        low_time_threshold: float = LOW_TIME_THRESHOLD_SECONDS,
    ):
        self._deadline = deadline
        self._scheduler = scheduler
        self._on_expire = on_expire
        self._clock = clock
        self._on_tick = on_tick
        self._tick_interval = tick_interval
        self._low_time_threshold = low_time_threshold

        self._handle: Optional[TimerHandle] = None
        self.state = CountdownState.NOT_STARTED
        self.ticks = 0

    @property
    def deadline(self) -> float:
        return self._deadline

    def remaining(self) -> float:
        return max(0.0, self._deadline - self._clock())

    @property
    def is_low_time(self) -> bool:
        return self.remaining() < self._low_time_threshold

    def start(self) -> None:
        if self.state is not CountdownState.NOT_STARTED:
            return
        self.state = CountdownState.RUNNING
        logger.info(f"카운트다운 시작 — 남은 시간 {format_remaining(self.remaining())}")
        self._tick()

    def stop(self) -> None:
        """타이머 해제. 화면 종료/제출 완료 후 오래된 타이머가 제출을 일으키지 않도록."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self.state in (CountdownState.NOT_STARTED, CountdownState.RUNNING):
            self.state = CountdownState.STOPPED

    def _tick(self) -> None:
        self._handle = None
        if self.state is not CountdownState.RUNNING:
            return

        self.ticks += 1
        remaining = self.remaining()
        if self._on_tick is not None:
            self._on_tick(remaining)

        if remaining <= 0:
            self.state = CountdownState.EXPIRED
            logger.info("카운트다운 종료 — 자동 제출")
            self._on_expire()
            return

        self._handle = self._scheduler.call_later(min(self._tick_interval, remaining), self._tick)
