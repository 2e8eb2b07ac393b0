"""
api/session.py — 시험 센터 인메모리 저장소 (시험 + 수험 세션)

센터 관리자가 수험자를 로그인시키면 추측 불가능한 토큰으로 WAITING 세션을 만들고,
시험 시작 시 IN_PROGRESS 로 전환한다. 수험자 패널은 토큰으로만 접근한다.
제출/만료 후 SESSION_TTL 이 지나면 주기적으로 정리.
"""

import copy
import secrets
import threading
import time
from datetime import datetime, timezone
from typing import Any

from config import (
    DEFAULT_EXAM_DURATION_MINUTES,
    EXPIRY_GRACE_SECONDS,
    SESSION_TOKEN_BYTES,
    SESSION_TTL,
)

_lock = threading.Lock()
_exams: dict[int, dict[str, Any]] = {}
_sessions: dict[str, dict[str, Any]] = {}
_next_ids = {"exam": 1, "session": 1}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _deadline(state: dict[str, Any]) -> float | None:
    started = state.get("exam_start_time")
    if started is None:
        return None
    exam = _exams.get(state["exam_id"], {})
    return started.timestamp() + exam.get("duration_seconds", DEFAULT_EXAM_DURATION_MINUTES * 60)


# ── 시험 ─────────────────────────────────────────────────────────────────────

def register_exam(title: str, duration_seconds: int, questions: list[dict[str, Any]]) -> dict[str, Any]:
    """시험을 등록하고 시험 정보를 반환. questions는 조회 순서 그대로 유지."""
    with _lock:
        exam_id = _next_ids["exam"]
        _next_ids["exam"] += 1
        _exams[exam_id] = {
            "id": exam_id,
            "title": title,
            "duration_seconds": duration_seconds,
            "questions": list(questions),
        }
        return copy.deepcopy(_exams[exam_id])


def get_exam(exam_id: int) -> dict[str, Any] | None:
    with _lock:
        exam = _exams.get(exam_id)
        return copy.deepcopy(exam) if exam else None


# ── 수험 세션 ────────────────────────────────────────────────────────────────

def create_session(exam_id: int, candidate: dict[str, Any], seat_number: str | None = None,
                   computer_number: str | None = None) -> dict[str, Any] | None:
    """수험자 로그인 → WAITING 세션 생성. 시험이 없으면 None."""
    token = secrets.token_hex(SESSION_TOKEN_BYTES)
    with _lock:
        if exam_id not in _exams:
            return None
        session_id = _next_ids["session"]
        _next_ids["session"] += 1
        _sessions[token] = {
            "id": session_id,
            "exam_id": exam_id,
            "session_token": token,
            "status": "WAITING",
            "candidate": dict(candidate),
            "seat_number": seat_number,
            "computer_number": computer_number,
            "login_time": _now(),
            "exam_start_time": None,
            "submission_time": None,
            "responses": [],
            "total_questions": 0,
            "attempted": 0,
            "last_saved_at": None,
            "closed_at": None,
        }
        return copy.deepcopy(_sessions[token])


def get_session(token: str) -> dict[str, Any] | None:
    """토큰으로 세션 조회 (복사본). 없으면 None."""
    with _lock:
        state = _sessions.get(token)
        return copy.deepcopy(state) if state else None


def is_expired(state: dict[str, Any], now: float | None = None) -> bool:
    """마감 + 유예 시간이 지나도록 제출되지 않은 진행 중 세션."""
    if state["status"] != "IN_PROGRESS":
        return False
    with _lock:
        deadline = _deadline(state)
    if deadline is None:
        return False
    return (now or time.time()) > deadline + EXPIRY_GRACE_SECONDS


def start_session(token: str) -> dict[str, Any] | None:
    """감독관의 시험 시작: WAITING → IN_PROGRESS. 다른 상태면 그대로 반환."""
    with _lock:
        state = _sessions.get(token)
        if state is None:
            return None
        if state["status"] == "WAITING":
            state["status"] = "IN_PROGRESS"
            state["exam_start_time"] = _now()
        return copy.deepcopy(state)


def save_responses(token: str, responses: list[dict[str, Any]]) -> bool:
    """
    자동 저장. 전체 응답 목록으로 덮어쓴다 (수신 시각 기준 last-write-wins).
    진행 중이 아니면 False.
    """
    with _lock:
        state = _sessions.get(token)
        if state is None or state["status"] != "IN_PROGRESS":
            return False
        state["responses"] = list(responses)
        state["attempted"] = sum(1 for r in responses if r.get("selectedAnswer"))
        state["last_saved_at"] = _now()
        return True


def submit_session(token: str, responses: list[dict[str, Any]], total_questions: int) -> dict[str, Any]:
    """
    최종 제출: IN_PROGRESS → SUBMITTED.

    Returns:
        {"result": "ok" | "not_found" | "already_submitted" | "not_started", "session": ...}
    """
    with _lock:
        state = _sessions.get(token)
        if state is None:
            return {"result": "not_found", "session": None}
        if state["status"] == "SUBMITTED":
            return {"result": "already_submitted", "session": copy.deepcopy(state)}
        if state["status"] != "IN_PROGRESS":
            return {"result": "not_started", "session": copy.deepcopy(state)}

        now = _now()
        state.update({
            "status": "SUBMITTED",
            "responses": list(responses),
            "total_questions": total_questions,
            "attempted": sum(1 for r in responses if r.get("selectedAnswer")),
            "submission_time": now,
            "closed_at": now,
        })
        return {"result": "ok", "session": copy.deepcopy(state)}


def list_sessions(exam_id: int | None = None) -> list[dict[str, Any]]:
    with _lock:
        return [
            copy.deepcopy(s) for s in _sessions.values()
            if exam_id is None or s["exam_id"] == exam_id
        ]


def cleanup_expired() -> int:
    """제출 후 SESSION_TTL 이 지났거나, 만료 후 SESSION_TTL 이 지난 세션 정리. 제거된 수 반환."""
    now = time.time()
    removed = 0
    with _lock:
        stale = []
        for token, state in _sessions.items():
            closed_at = state.get("closed_at")
            if closed_at is not None and now - closed_at.timestamp() > SESSION_TTL:
                stale.append(token)
                continue
            deadline = _deadline(state)
            if state["status"] == "IN_PROGRESS" and deadline is not None \
                    and now - deadline > EXPIRY_GRACE_SECONDS + SESSION_TTL:
                stale.append(token)
        for token in stale:
            del _sessions[token]
            removed += 1
    return removed


def reset() -> None:
    """저장소 초기화 (테스트용)."""
    with _lock:
        _exams.clear()
        _sessions.clear()
        _next_ids.update({"exam": 1, "session": 1})
