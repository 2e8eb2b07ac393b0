"""
api/routes.py — 시험 센터 FastAPI 엔드포인트

수험자 패널용:
  GET  /api/student-exam/validate/{token}
  GET  /api/student-exam/{token}/questions
  POST /api/student-exam/{token}/save-response
  POST /api/student-exam/{token}/submit

센터 관리자용:
  POST /api/center-admin/exams
  POST /api/center-admin/student-login
  POST /api/center-admin/sessions/{token}/start
  GET  /api/center-admin/sessions
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

import api.session as session
from api.sample_questions import DEMO_QUESTIONS
from config import DEFAULT_EXAM_DURATION_MINUTES
from exam_panel.models.question_model import Question
from exam_panel.models.response_model import Response

logger = logging.getLogger(__name__)

router = APIRouter()

# ── Pydantic request bodies ──────────────────────────────────────────────────

class _CamelBody(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateExamBody(_CamelBody):
    title: str = Field(..., min_length=1)
    duration: int = Field(default=DEFAULT_EXAM_DURATION_MINUTES, ge=1, description="제한 시간 (분)")
    duration_seconds: Optional[int] = Field(default=None, ge=1, description="제한 시간 (초), 지정 시 우선")
    questions: list[Question] = []


class StudentLoginBody(_CamelBody):
    exam_id: int
    name: str = Field(..., min_length=1)
    roll_number: str = Field(..., min_length=1)
    photo_url: Optional[str] = None
    signature_url: Optional[str] = None
    seat_number: Optional[str] = None
    computer_number: Optional[str] = None


class SaveResponseBody(_CamelBody):
    responses: list[Response]


class SubmitBody(_CamelBody):
    responses: list[Response]
    total_questions: int = Field(..., ge=0)


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _session_to_dict(state: dict[str, Any]) -> dict:
    return {
        "id": state["id"],
        "examId": state["exam_id"],
        "sessionToken": state["session_token"],
        "status": state["status"],
        "seatNumber": state["seat_number"],
        "computerNumber": state["computer_number"],
        "loginTime": _iso(state["login_time"]),
        "examStartTime": _iso(state["exam_start_time"]),
        "submissionTime": _iso(state["submission_time"]),
        "lastSavedAt": _iso(state["last_saved_at"]),
        "totalQuestions": state["total_questions"],
        "attempted": state["attempted"],
    }


def _candidate_to_dict(candidate: dict[str, Any]) -> dict:
    return {
        "name": candidate.get("name", ""),
        "rollNumber": candidate.get("roll_number", ""),
        "photoUrl": candidate.get("photo_url"),
        "signatureUrl": candidate.get("signature_url"),
    }


def _exam_to_dict(exam: dict[str, Any]) -> dict:
    return {
        "id": exam["id"],
        "title": exam["title"],
        "duration": max(1, exam["duration_seconds"] // 60),
        "durationSeconds": exam["duration_seconds"],
    }


def _require_session(token: str) -> dict[str, Any]:
    state = session.get_session(token)
    if state is None:
        raise HTTPException(status_code=404, detail="유효하지 않은 세션입니다.")
    return state


# ── 수험자 패널 엔드포인트 ────────────────────────────────────────────────────

@router.get("/api/student-exam/validate/{token}")
async def validate_session(token: str):
    state = _require_session(token)
    if session.is_expired(state):
        raise HTTPException(status_code=410, detail="시험 시간이 만료된 세션입니다.")
    exam = session.get_exam(state["exam_id"])
    if exam is None:
        raise HTTPException(status_code=404, detail="시험 정보를 찾을 수 없습니다.")
    return {
        "session": _session_to_dict(state),
        "candidate": _candidate_to_dict(state["candidate"]),
        "exam": _exam_to_dict(exam),
    }


@router.get("/api/student-exam/{token}/questions")
async def get_questions(token: str):
    state = session.get_session(token)
    if state is None or state["status"] != "IN_PROGRESS":
        raise HTTPException(status_code=403, detail="시험이 시작되지 않았거나 유효하지 않은 세션입니다.")

    exam = session.get_exam(state["exam_id"]) or {}
    questions = exam.get("questions") or []
    is_demo = not questions
    if is_demo:
        # 등록된 문제가 하나도 없을 때만 데모 문제 제공
        questions = [q.model_dump(by_alias=True) for q in DEMO_QUESTIONS]
        logger.warning(f"[Questions] 시험 {state['exam_id']}에 문제가 없어 데모 문제 제공 (세션 {state['id']})")

    logger.info(f"[Questions] 세션 {state['id']}에 {len(questions)}문항 제공")
    return {"questions": questions, "isDemo": is_demo}


@router.post("/api/student-exam/{token}/save-response")
async def save_response(token: str, body: SaveResponseBody):
    responses = [r.model_dump(by_alias=True) for r in body.responses]
    if not session.save_responses(token, responses):
        raise HTTPException(status_code=403, detail="시험이 진행 중이 아니어서 저장할 수 없습니다.")
    return {"success": True}


@router.post("/api/student-exam/{token}/submit")
async def submit_exam(token: str, body: SubmitBody):
    responses = [r.model_dump(by_alias=True) for r in body.responses]
    outcome = session.submit_session(token, responses, body.total_questions)
    result = outcome["result"]
    if result == "not_found":
        raise HTTPException(status_code=404, detail="세션을 찾을 수 없습니다.")
    if result == "already_submitted":
        raise HTTPException(status_code=409, detail="이미 제출된 시험입니다.")
    if result == "not_started":
        raise HTTPException(status_code=403, detail="시험이 진행 중이 아닙니다.")

    logger.info(f"세션 {outcome['session']['id']} 제출 완료 ({outcome['session']['attempted']}/{body.total_questions})")
    return {"success": True, "session": _session_to_dict(outcome["session"])}


# ── 센터 관리자 엔드포인트 ────────────────────────────────────────────────────

@router.post("/api/center-admin/exams")
async def create_exam(body: CreateExamBody):
    duration_seconds = body.duration_seconds or body.duration * 60
    questions = [q.model_dump(by_alias=True) for q in body.questions]
    exam = session.register_exam(body.title, duration_seconds, questions)
    return {"exam": _exam_to_dict(exam), "questionCount": len(questions)}


@router.post("/api/center-admin/student-login")
async def student_login(body: StudentLoginBody):
    candidate = {
        "name": body.name,
        "roll_number": body.roll_number,
        "photo_url": body.photo_url,
        "signature_url": body.signature_url,
    }
    state = session.create_session(body.exam_id, candidate, body.seat_number, body.computer_number)
    if state is None:
        raise HTTPException(status_code=404, detail="시험을 찾을 수 없습니다.")
    token = state["session_token"]
    return {
        "session": _session_to_dict(state),
        "candidate": _candidate_to_dict(state["candidate"]),
        "studentPanelUrl": f"/?token={token}",
    }


@router.post("/api/center-admin/sessions/{token}/start")
async def start_session(token: str):
    state = session.start_session(token)
    if state is None:
        raise HTTPException(status_code=404, detail="세션을 찾을 수 없습니다.")
    return _session_to_dict(state)


@router.get("/api/center-admin/sessions")
async def list_sessions(exam_id: Optional[int] = None):
    return [_session_to_dict(s) for s in session.list_sessions(exam_id)]
