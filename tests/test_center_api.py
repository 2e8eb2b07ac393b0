import asyncio
from datetime import datetime, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from api.app import create_app
from conftest import make_questions
from exam_panel.errors import (
    CenterResponseError,
    CenterUnavailableError,
    SessionExpiredError,
    SessionNotFoundError,
)
from exam_panel.models.response_model import Response
from exam_panel.models.session_state import SessionStatus
from exam_panel.services.center_client import CenterClient
from exam_panel.services.exam_session import ExamSession, PanelPhase

LONG_AGO = datetime(2020, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def client(center):
    return TestClient(create_app(cleanup=False))


def _questions_payload(count=2):
    return [q.model_dump(by_alias=True) for q in make_questions(count)]


def _login(client, questions=None, duration_seconds=600):
    exam = client.post(
        "/api/center-admin/exams",
        json={"title": "Center Exam", "durationSeconds": duration_seconds,
              "questions": _questions_payload() if questions is None else questions},
    ).json()["exam"]
    resp = client.post(
        "/api/center-admin/student-login",
        json={"examId": exam["id"], "name": "Asha Verma", "rollNumber": "R-1001", "seatNumber": "A-01"},
    )
    assert resp.status_code == 200
    return resp.json()["session"]["sessionToken"]


# ── HTTP 엔드포인트 ──────────────────────────────────────────────────────────

def test_session_lifecycle_over_http(client):
    token = _login(client)
    assert len(token) == 64

    body = client.get(f"/api/student-exam/validate/{token}").json()
    assert body["session"]["status"] == "WAITING"
    assert body["candidate"]["rollNumber"] == "R-1001"
    assert body["exam"]["durationSeconds"] == 600
    assert client.get(f"/api/student-exam/{token}/questions").status_code == 403

    started = client.post(f"/api/center-admin/sessions/{token}/start").json()
    assert started["status"] == "IN_PROGRESS"
    assert started["examStartTime"] is not None

    questions = client.get(f"/api/student-exam/{token}/questions").json()
    assert questions["isDemo"] is False
    assert [q["id"] for q in questions["questions"]] == [1, 2]

    answers = [
        Response(question_id=1, selected_answer="A").to_wire(),
        Response(question_id=2, marked_for_review=True).to_wire(),
    ]
    assert client.post(f"/api/student-exam/{token}/save-response", json={"responses": answers}).status_code == 200
    listed = client.get("/api/center-admin/sessions").json()
    assert listed[0]["attempted"] == 1
    assert listed[0]["lastSavedAt"] is not None

    submit = {"responses": answers, "totalQuestions": 2}
    resp = client.post(f"/api/student-exam/{token}/submit", json=submit)
    assert resp.status_code == 200
    assert resp.json()["session"]["status"] == "SUBMITTED"

    assert client.post(f"/api/student-exam/{token}/submit", json=submit).status_code == 409
    assert client.post(f"/api/student-exam/{token}/save-response", json={"responses": answers}).status_code == 403


def test_unknown_token_is_404(client):
    assert client.get("/api/student-exam/validate/nope").status_code == 404
    resp = client.post("/api/student-exam/nope/submit", json={"responses": [], "totalQuestions": 0})
    assert resp.status_code == 404


def test_exam_without_questions_serves_demo_set(client):
    token = _login(client, questions=[])
    client.post(f"/api/center-admin/sessions/{token}/start")

    body = client.get(f"/api/student-exam/{token}/questions").json()
    assert body["isDemo"] is True
    assert len(body["questions"]) == 5


def test_session_past_deadline_and_grace_is_gone(client, center):
    token = _login(client)
    client.post(f"/api/center-admin/sessions/{token}/start")
    center._sessions[token]["exam_start_time"] = LONG_AGO

    assert client.get(f"/api/student-exam/validate/{token}").status_code == 410


def test_cleanup_drops_stale_sessions(client, center):
    token = _login(client)
    client.post(f"/api/center-admin/sessions/{token}/start")
    center.submit_session(token, [], 2)
    assert center.cleanup_expired() == 0

    center._sessions[token]["closed_at"] = LONG_AGO
    assert center.cleanup_expired() == 1
    assert center.get_session(token) is None


# ── CenterClient ─────────────────────────────────────────────────────────────

def _seed(center, count=2):
    exam = center.register_exam("Center Exam", 600, _questions_payload(count))
    state = center.create_session(exam["id"], {"name": "Asha Verma", "roll_number": "R-1001"}, "A-01")
    return state["session_token"]


def _asgi_client():
    transport = httpx.ASGITransport(app=create_app(cleanup=False))
    return httpx.AsyncClient(transport=transport, base_url="http://center")


def test_client_round_trip(center):
    token = _seed(center)

    async def scenario():
        async with _asgi_client() as http:
            client = CenterClient(client=http)
            with pytest.raises(SessionNotFoundError):
                await client.validate("missing")

            record = await client.validate(token)
            assert record.status is SessionStatus.WAITING
            assert record.candidate.name == "Asha Verma"

            center.start_session(token)
            questions = await client.load_questions(token)
            assert [q.id for q in questions] == [1, 2]

            responses = [Response(question_id=1, selected_answer="B"), Response(question_id=2)]
            await client.save_responses(token, responses)
            await client.submit(token, responses, 2)
            # 두 번째 제출은 409 → 이미 반영된 것으로 처리
            await client.submit(token, responses, 2)

    asyncio.run(scenario())
    stored = center.get_session(token)
    assert stored["status"] == "SUBMITTED"
    assert stored["responses"][0]["selectedAnswer"] == "B"


def test_client_marks_demo_questions(center):
    exam = center.register_exam("Empty", 600, [])
    token = center.create_session(exam["id"], {"name": "x", "roll_number": "y"})["session_token"]
    center.start_session(token)

    async def scenario():
        async with _asgi_client() as http:
            return await CenterClient(client=http).load_questions(token)

    questions = asyncio.run(scenario())
    assert questions and all(q.is_demo for q in questions)


def test_panel_session_against_center(center):
    token = _seed(center)
    center.start_session(token)

    async def scenario():
        async with _asgi_client() as http:
            session = ExamSession(token, CenterClient(client=http), allow_demo=False, submit_on_leave=False)
            await session.open()
            assert session.phase is PanelPhase.IN_PROGRESS
            assert 590 < session.remaining() <= 600

            session.select_answer("C")
            await session.settle()
            assert center.get_session(token)["attempted"] == 1

            assert await session.submit(confirmed=True) is True
            await session.leave()
            return session

    session = asyncio.run(scenario())
    assert session.phase is PanelPhase.SUBMITTED
    assert center.get_session(token)["status"] == "SUBMITTED"


def _refuse(request):
    raise httpx.ConnectError("refused", request=request)


@pytest.mark.parametrize(
    "handler, error",
    [
        (_refuse, CenterUnavailableError),
        (lambda request: httpx.Response(503, json={"detail": "busy"}), CenterUnavailableError),
        (lambda request: httpx.Response(410, json={"detail": "expired"}), SessionExpiredError),
        (lambda request: httpx.Response(200, text="not json"), CenterResponseError),
    ],
    ids=["connect-error", "server-error", "gone", "malformed"],
)
def test_client_error_mapping(handler, error):
    async def scenario():
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport, base_url="http://center") as http:
            await CenterClient(client=http).validate("abc")

    with pytest.raises(error):
        asyncio.run(scenario())
