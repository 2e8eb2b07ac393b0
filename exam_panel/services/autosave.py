"""
services/autosave.py

응답이 바뀔 때마다 전체 응답 목록을 센터 서버에 저장한다.

- 변경분이 아니라 전체 상태를 보내므로 나중 호출이 항상 이전 호출을 대체한다
- 호출은 화면 상호작용을 막지 않는 fire-and-forget 태스크
- 실패는 로그만 남기고 삼킨다. 다음 변경의 저장 시도가 사실상의 재시도
"""

import asyncio
import logging
from typing import List, Optional, Set

from exam_panel.models.response_model import Response
from exam_panel.services.center_client import ExamBackend

logger = logging.getLogger(__name__)


class AutosaveDispatcher:
    def __init__(self, backend: ExamBackend, token: str):
        self._backend = backend
        self._token = token
        self._inflight: Set[asyncio.Task] = set()
        self._closed = False

        self.issued = 0
        self.succeeded = 0
        self.failed = 0
        self.last_payload: Optional[List[Response]] = None

    @property
    def pending(self) -> int:
        return len(self._inflight)

    def on_mutation(self, snapshot: List[Response]) -> None:
        """ResponseStore 구독 콜백. 실행 중인 이벤트 루프에서 호출되어야 한다."""
        if self._closed:
            return
        self.last_payload = snapshot
        self.issued += 1
        task = asyncio.get_running_loop().create_task(self._save(snapshot, self.issued))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    async def _save(self, payload: List[Response], seq: int) -> None:
        try:
            await self._backend.save_responses(self._token, payload)
        except Exception as e:
            self.failed += 1
            logger.warning(f"자동 저장 #{seq} 실패 (다음 변경 시 재전송): {e}")
            return
        self.succeeded += 1
        logger.debug(f"자동 저장 #{seq} 완료 ({len(payload)}문항)")

    async def flush(self) -> None:
        """진행 중인 저장 호출이 모두 끝날 때까지 대기."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)

    def close(self) -> None:
        """이후 변경은 저장하지 않음. 진행 중인 호출은 취소하지 않는다."""
        self._closed = True
