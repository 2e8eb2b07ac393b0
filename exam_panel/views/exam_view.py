"""
views/exam_view.py — 시험 풀기 화면

레이아웃:
  - st.sidebar : 수험자 정보 + 타이머 + 문제 번호 팔레트 + 최종 제출
  - 메인 영역  : 현재 문제 카드 + 검토 표시 + 이전/다음

상태 관리:
  - st.session_state.exam_session (ExamSession, 이벤트 루프 위에서만 조작)
  - 화면은 매 렌더링마다 ExamSession.view() 스냅샷만 읽는다
  - 조작은 runtime.call(...) 로 루프 스레드에 전달
"""

from __future__ import annotations

import streamlit as st

from exam_panel.errors import ExamPanelError
from exam_panel.runtime import PanelRuntime
from exam_panel.services.exam_session import ExamSession, PanelPhase, PanelView
from exam_panel.views.components import question_card as qcard
from exam_panel.views.components import sidebar as nav
from exam_panel.views.components import timer as tmr


def _act(runtime: PanelRuntime, fn, *args) -> None:
    """수험자 조작을 루프에 전달하고 화면 갱신."""
    try:
        runtime.call(fn, *args)
    except ExamPanelError as e:
        st.warning(str(e))
        return
    st.rerun()


def _submit(runtime: PanelRuntime, session: ExamSession) -> None:
    st.session_state["confirm_submit"] = False
    with st.spinner("답안을 제출하는 중입니다..."):
        runtime.run(session.submit(confirmed=True))
    st.rerun()


@st.fragment(run_every=1)
def _live_timer(runtime: PanelRuntime, session: ExamSession, phase: PanelPhase) -> None:
    """1초마다 남은 시간만 다시 그림. 자동 제출 등으로 phase가 바뀌면 전체 화면 갱신."""
    view: PanelView = runtime.call(session.view)
    if view.phase is not phase:
        st.rerun()
    tmr.render(view.remaining, view.low_time, view.expired)


def _render_submit_box(runtime: PanelRuntime, session: ExamSession, view: PanelView) -> None:
    unanswered = view.summary.get("unanswered", 0)
    marked = view.summary.get("marked", 0)

    if unanswered > 0:
        st.markdown(
            f"<p style='font-size:0.8rem; color:#f59e0b; margin-bottom:8px;'>"
            f"⚠️ 미응답 문제: {unanswered}개</p>",
            unsafe_allow_html=True,
        )

    if st.button("최종 제출", key="submit_sidebar", type="primary", disabled=view.submitting):
        st.session_state["confirm_submit"] = True
        st.rerun()

    # 제출 확인 다이얼로그 (수동 제출은 반드시 확인을 거침)
    if st.session_state.get("confirm_submit"):
        st.warning(
            f"미응답 {unanswered}개, 검토 표시 {marked}개가 있습니다. "
            "제출 후에는 답안을 변경할 수 없습니다. 제출하시겠습니까?"
        )
        col_yes, col_no = st.columns(2)
        with col_yes:
            if st.button("제출", key="confirm_yes", type="primary"):
                _submit(runtime, session)
        with col_no:
            if st.button("취소", key="confirm_no"):
                st.session_state["confirm_submit"] = False
                st.rerun()


def render(runtime: PanelRuntime, session: ExamSession) -> None:
    """시험 화면 렌더링."""
    view: PanelView = runtime.call(session.view)
    if view.question is None or view.response is None or view.record is None:
        st.warning("시험 정보가 없습니다.")
        return

    # ── 사이드바 ───────────────────────────────────────────────────────────
    with st.sidebar:
        nav.render_candidate(view.record)
        st.markdown('<hr class="cbt-divider">', unsafe_allow_html=True)

        _live_timer(runtime, session, view.phase)
        st.markdown('<hr class="cbt-divider">', unsafe_allow_html=True)

        nav.render(view.palette, view.summary, on_jump=lambda i: runtime.call(session.go_to, i))
        st.markdown('<hr class="cbt-divider">', unsafe_allow_html=True)

        _render_submit_box(runtime, session, view)

    # ── 메인 영역 헤더 ─────────────────────────────────────────────────────
    st.markdown(
        f"<h2 style='font-size:1.3rem; font-weight:700; color:#1a1a2e; "
        f"margin-bottom:4px;'>{view.record.exam.title}</h2>",
        unsafe_allow_html=True,
    )
    if view.phase is PanelPhase.SUBMIT_FAILED:
        st.error(view.error_message)
        if st.button("다시 제출", key="retry_submit", type="primary", disabled=view.submitting):
            _submit(runtime, session)

    st.markdown('<hr class="cbt-divider">', unsafe_allow_html=True)

    # ── 문제 카드 ─────────────────────────────────────────────────────────
    selected = qcard.render(
        question=view.question,
        question_number=view.index + 1,
        total=view.total,
        saved_answer=view.response.selected_answer,
        disabled=not view.interactive,
    )
    if view.interactive and selected and selected != view.response.selected_answer:
        _act(runtime, session.select_answer, selected)

    action_left, action_right = st.columns(2)
    with action_left:
        review_label = "🚩 검토 표시 해제" if view.response.marked_for_review else "🚩 검토 표시"
        if st.button(review_label, key="toggle_review", disabled=not view.interactive):
            _act(runtime, session.toggle_review)
    with action_right:
        if st.button("선택 지우기", key="clear_answer",
                     disabled=not view.interactive or not view.response.selected_answer):
            _act(runtime, session.clear_answer)

    # ── 이전 / 다음 네비게이션 ────────────────────────────────────────────
    st.markdown("<br>", unsafe_allow_html=True)
    nav_left, nav_center, nav_right = st.columns([1, 2, 1])

    with nav_left:
        if st.button("← 이전 문제", key="prev_btn", use_container_width=True,
                     disabled=view.index == 0):
            _act(runtime, session.previous_question)

    with nav_center:
        st.markdown(
            f"<p style='text-align:center; font-size:0.85rem; color:#9ca3af; "
            f"padding-top:8px;'>{view.index + 1} / {view.total}</p>",
            unsafe_allow_html=True,
        )

    with nav_right:
        if st.button("다음 문제 →", key="next_btn", type="primary", use_container_width=True,
                     disabled=view.index >= view.total - 1):
            _act(runtime, session.next_question)
