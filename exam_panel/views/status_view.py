"""
views/status_view.py — 시험 외 상태 화면

표시 내용:
  - 토큰 없음 / 세션 오류 : 종료 화면, 감독관 문의 안내 (자동 재시도 없음)
  - 센터 연결 불가        : 다시 연결 버튼
  - 대기실               : 수험자/시험/좌석 정보 + 주기적 상태 재확인
  - 문제 로드 실패        : 다시 시도 버튼 (자동 폴링 없음)
  - 제출 완료            : 완료 확인 화면 + 잠긴 문제 번호 팔레트
"""

from __future__ import annotations

import streamlit as st

from config import WAITING_POLL_SECONDS
from exam_panel.runtime import PanelRuntime
from exam_panel.services.exam_session import ExamSession, PanelPhase, PanelView
from exam_panel.views.components import sidebar as nav


def _centered():
    _, col, _ = st.columns([0.8, 2.5, 0.8])
    return col


def render_missing_token(view: PanelView) -> None:
    with _centered():
        st.error("세션 토큰이 없습니다.")
        st.markdown("유효한 세션 토큰이 제공되지 않았습니다. 시험 센터 관리자에게 문의하세요.")


def render_session_error(view: PanelView) -> None:
    with _centered():
        st.error("세션 오류")
        st.markdown(view.error_message or "시험 세션을 불러올 수 없습니다. 감독관에게 문의하세요.")


def render_offline(runtime: PanelRuntime, session: ExamSession, view: PanelView) -> None:
    with _centered():
        st.warning(view.error_message)
        if st.button("다시 연결", type="primary"):
            runtime.run(session.refresh())
            st.rerun()


@st.fragment(run_every=WAITING_POLL_SECONDS)
def _poll_waiting(runtime: PanelRuntime, session: ExamSession) -> None:
    """감독관이 시험을 시작했는지 주기적으로 확인. 상태가 바뀌면 전체 화면 갱신."""
    phase = runtime.run(session.refresh())
    if phase is not PanelPhase.WAITING:
        st.rerun()
    st.caption("⏳ 시험 시작을 기다리는 중입니다...")


def render_waiting(runtime: PanelRuntime, session: ExamSession, view: PanelView) -> None:
    record = view.record
    with _centered():
        st.markdown("### 🖥 시험 준비 완료")
        st.markdown("세션이 준비되었습니다. 감독관이 시험을 시작할 때까지 기다려 주세요.")
        if record is not None:
            st.markdown(
                f"""
                | 항목 | 내용 |
                |---|---|
                | 수험자 | {record.candidate.name or '-'} |
                | 수험번호 | `{record.candidate.roll_number or '-'}` |
                | 시험 | {record.exam.title or '-'} |
                | 좌석 | {record.session.seat_number or '배정됨'} |
                """
            )
        st.info("이 창을 닫지 마세요.")
        _poll_waiting(runtime, session)


def render_load_error(runtime: PanelRuntime, session: ExamSession, view: PanelView) -> None:
    with _centered():
        st.error(view.error_message or "문제를 불러오지 못했습니다.")
        if st.button("다시 시도", type="primary"):
            with st.spinner("문제를 불러오는 중..."):
                runtime.run(session.retry_load())
            st.rerun()


def render_submitted(view: PanelView) -> None:
    with _centered():
        st.success("✅ 시험 제출 완료")
        st.markdown("답안이 정상적으로 저장되었습니다. 이 창을 닫아도 됩니다.")
        if view.summary:
            st.caption(f"응답 {view.summary.get('answered', 0)} / {view.summary.get('total', 0)}문항")
        st.caption("답안은 시험 센터에서 본 서버로 전송됩니다.")

    # 같은 화면에서 제출한 경우 잠긴 답안지 팔레트를 그대로 보여줌
    if view.palette:
        with st.sidebar:
            if view.record is not None:
                nav.render_candidate(view.record)
            nav.render(view.palette, view.summary)


def render_closed(view: PanelView) -> None:
    with _centered():
        st.info("수험 화면이 종료되었습니다. 감독관의 안내에 따라 주세요.")
