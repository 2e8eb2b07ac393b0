"""
services/center_client.py

시험 센터 서버와의 통신 계층.
Public API:
  - ExamBackend                       : 패널이 의존하는 4개 연산의 계약 (Protocol)
  - CenterClient(base_url)            : httpx 기반 실제 구현

설계 원칙:
- 전송 오류(httpx.HTTPError)와 5xx는 CenterUnavailableError로 변환
- 응답 형식 오류(pydantic ValidationError)는 CenterResponseError로 변환
- 자동 저장 실패를 삼킬지는 호출자가 결정 (여기서는 항상 예외를 올림)
"""

import logging
from typing import List, Optional, Protocol, Sequence

import httpx
from pydantic import ValidationError

from config import CENTER_SERVER_URL, DEFAULT_TIMEOUT
from exam_panel.errors import (
    CenterResponseError,
    CenterUnavailableError,
    SessionExpiredError,
    SessionNotFoundError,
)
from exam_panel.models.question_model import Question
from exam_panel.models.response_model import Response
from exam_panel.models.session_state import SessionRecord

logger = logging.getLogger(__name__)


class ExamBackend(Protocol):
    """센터 서버가 제공하는 4개 연산."""

    async def validate(self, token: str) -> SessionRecord: ...

    async def load_questions(self, token: str) -> List[Question]: ...

    async def save_responses(self, token: str, responses: Sequence[Response]) -> None: ...

    async def submit(self, token: str, responses: Sequence[Response], total_questions: int) -> None: ...


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("message") or body)
    return str(body)


class CenterClient:
    """
    httpx.AsyncClient 기반 센터 서버 클라이언트.

    Args:
        base_url: 센터 서버 주소 (기본값 config.CENTER_SERVER_URL)
        timeout:  요청 제한 시간 (초)
        client:   외부에서 주입하는 AsyncClient (테스트용 ASGITransport 등)
    """

    def __init__(
        self,
        base_url: str = CENTER_SERVER_URL,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise CenterUnavailableError(f"센터 서버 연결 실패: {e}") from e
        if resp.status_code >= 500:
            raise CenterUnavailableError(f"센터 서버 오류 (HTTP {resp.status_code}): {_error_detail(resp)}")
        return resp

    # ── 세션 확인 ────────────────────────────────────────────────────────────

    async def validate(self, token: str) -> SessionRecord:
        resp = await self._request("GET", f"/api/student-exam/validate/{token}")
        if resp.status_code == 404:
            raise SessionNotFoundError(_error_detail(resp))
        if resp.status_code == 410:
            raise SessionExpiredError(_error_detail(resp))
        if resp.status_code != 200:
            raise CenterResponseError(_error_detail(resp), resp.status_code)
        try:
            return SessionRecord.model_validate(resp.json())
        except (ValueError, ValidationError) as e:
            raise CenterResponseError(f"세션 응답 형식 오류: {e}") from e

    # ── 문제 조회 ────────────────────────────────────────────────────────────

    async def load_questions(self, token: str) -> List[Question]:
        resp = await self._request("GET", f"/api/student-exam/{token}/questions")
        if resp.status_code != 200:
            raise CenterResponseError(_error_detail(resp), resp.status_code)
        try:
            body = resp.json()
            is_demo = bool(body.get("isDemo", False))
            questions = [Question.model_validate(item) for item in body["questions"]]
        except (ValueError, KeyError, TypeError, AttributeError, ValidationError) as e:
            raise CenterResponseError(f"문제 응답 형식 오류: {e}") from e
        if is_demo:
            questions = [q.model_copy(update={"is_demo": True}) for q in questions]
        return questions

    # ── 자동 저장 ────────────────────────────────────────────────────────────

    async def save_responses(self, token: str, responses: Sequence[Response]) -> None:
        resp = await self._request(
            "POST",
            f"/api/student-exam/{token}/save-response",
            json={"responses": [r.to_wire() for r in responses]},
        )
        if resp.status_code != 200:
            raise CenterResponseError(_error_detail(resp), resp.status_code)

    # ── 최종 제출 ────────────────────────────────────────────────────────────

    async def submit(self, token: str, responses: Sequence[Response], total_questions: int) -> None:
        resp = await self._request(
            "POST",
            f"/api/student-exam/{token}/submit",
            json={
                "responses": [r.to_wire() for r in responses],
                "totalQuestions": total_questions,
            },
        )
        if resp.status_code == 409:
            # 이전 제출이 서버에 도달했으나 응답을 받지 못한 경우
            logger.info("submit: 서버에 이미 제출된 세션 — 수신 확인으로 처리")
            return
        if resp.status_code != 200:
            raise CenterResponseError(_error_detail(resp), resp.status_code)
