"""
runtime.py — Streamlit 프로세스용 이벤트 루프 호스트

Streamlit 스크립트는 매 상호작용마다 처음부터 다시 실행되므로,
카운트다운 타이머와 자동 저장 태스크는 별도 스레드의 asyncio 루프 하나에서 돈다.
모든 ExamSession 메서드는 이 루프 위에서만 실행된다 (코어는 단일 스레드).
"""

import asyncio
import functools
import logging
import threading
from typing import Any, Callable, Coroutine, Optional

from config import CENTER_SERVER_URL, DEFAULT_TIMEOUT
from exam_panel.services.center_client import CenterClient
from exam_panel.services.exam_session import ExamSession

logger = logging.getLogger(__name__)


class PanelRuntime:
    def __init__(self, base_url: str = CENTER_SERVER_URL, timeout: float = DEFAULT_TIMEOUT):
        self._base_url = base_url
        self._timeout = timeout
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run_loop, name="exam-panel-loop", daemon=True)
        self._thread.start()
        self._client: Optional[CenterClient] = None

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def run(self, coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
        """코루틴을 루프에서 실행하고 결과를 기다린다 (Streamlit 스레드에서 호출)."""
        future = asyncio.run_coroutine_threadsafe(coro, self._loop)
        return future.result(timeout)

    def call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """동기 함수를 루프 스레드에서 실행하고 결과를 반환."""

        async def _invoke():
            return fn(*args, **kwargs)

        return self.run(_invoke())

    def open_session(self, token: Optional[str]) -> ExamSession:
        """새 ExamSession을 루프에서 생성하고 open()까지 수행."""
        return self.run(self._open_session(token))

    async def _open_session(self, token: Optional[str]) -> ExamSession:
        if self._client is None:
            self._client = CenterClient(self._base_url, timeout=self._timeout)
        session = ExamSession(token, self._client)
        await session.open()
        return session

    def shutdown(self) -> None:
        if self._client is not None:
            self.run(self._client.aclose())
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=5)
        logger.info("패널 이벤트 루프 종료")


@functools.lru_cache(maxsize=1)
def get_runtime() -> PanelRuntime:
    """프로세스당 하나의 런타임."""
    return PanelRuntime()
