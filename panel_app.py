"""
panel_app.py — 수험자 패널 (Streamlit 진입점)

실행: streamlit run panel_app.py
접속: http://<host>:<port>/?token=<세션 토큰>
"""

import logging
import sys

import streamlit as st

from config import LOG_FILE
from exam_panel.runtime import PanelRuntime, get_runtime
from exam_panel.services.exam_session import ExamSession, PanelPhase
from exam_panel.views import exam_view, status_view

# ── 로깅 설정 (패널은 별도 프로세스, 스크립트 재실행마다 중복 설정하지 않음) ──
if not logging.getLogger().handlers:
    try:
        logging.basicConfig(
            level=logging.INFO,
            format='%(asctime)s [%(levelname)s] %(message)s',
            handlers=[
                logging.FileHandler(LOG_FILE, encoding='utf-8'),
                logging.StreamHandler(sys.stdout)
            ]
        )
    except PermissionError:
        # 로그 파일 점유 시 콘솔 출력만 사용
        logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)

st.set_page_config(page_title="시험 센터 수험 패널", page_icon="🖥", layout="wide")

st.markdown(
    """
    <style>
    .timer-display { font-family: monospace; font-size: 1.4rem; font-weight: 700;
                     padding: 8px 12px; border-radius: 6px; background: #1e3a8a; color: white; }
    .timer-warning { background: #ef4444; animation: pulse 1s infinite; }
    @keyframes pulse { 50% { opacity: 0.6; } }
    .question-number-badge { background: #1a1a2e; color: white; padding: 2px 10px;
                             border-radius: 12px; font-size: 0.8rem; }
    .question-card { padding: 16px 0; }
    .candidate-initial { width: 56px; height: 56px; border-radius: 50%; background: #dbeafe;
                         color: #2563eb; font-size: 1.4rem; font-weight: 700;
                         display: flex; align-items: center; justify-content: center; }
    .cbt-divider { margin: 12px 0; border: none; border-top: 1px solid #e5e7eb; }
    </style>
    """,
    unsafe_allow_html=True,
)


def _get_session(runtime: PanelRuntime) -> ExamSession:
    """브라우저 세션당 하나의 ExamSession. 토큰이 바뀌면 이전 세션을 정리하고 새로 연다."""
    token = st.query_params.get("token", "")
    session: ExamSession | None = st.session_state.get("exam_session")
    if session is not None and session.token == token.strip():
        return session
    if session is not None:
        logger.info("세션 토큰 변경 — 이전 수험 화면 종료")
        runtime.run(session.leave())
    with st.spinner("시험 세션을 불러오는 중..."):
        session = runtime.open_session(token)
    logger.info(f"수험 화면 열림 ({session.phase.value})")
    st.session_state.exam_session = session
    st.session_state["confirm_submit"] = False
    return session


def main() -> None:
    runtime = get_runtime()
    session = _get_session(runtime)
    view = runtime.call(session.view)

    if view.phase is PanelPhase.MISSING_TOKEN:
        status_view.render_missing_token(view)
    elif view.phase is PanelPhase.SESSION_ERROR:
        status_view.render_session_error(view)
    elif view.phase is PanelPhase.OFFLINE:
        status_view.render_offline(runtime, session, view)
    elif view.phase is PanelPhase.WAITING:
        status_view.render_waiting(runtime, session, view)
    elif view.phase is PanelPhase.LOAD_ERROR:
        status_view.render_load_error(runtime, session, view)
    elif view.phase is PanelPhase.SUBMITTED:
        status_view.render_submitted(view)
    elif view.phase is PanelPhase.CLOSED:
        status_view.render_closed(view)
    else:
        exam_view.render(runtime, session)


main()
