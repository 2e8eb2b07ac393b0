"""
views/components/sidebar.py

수험자 정보 + 진행 현황 + 문제 번호 팔레트 컴포넌트.
각 번호를 클릭하면 해당 문제로 바로 이동한다.
"""

from __future__ import annotations

from typing import Callable, Optional

import streamlit as st

from exam_panel.models.session_state import SessionRecord
from exam_panel.services.navigator import PaletteCell, QuestionStatus

_STATUS_ICON = {
    QuestionStatus.LOCKED: "🔒",
    QuestionStatus.ANSWERED: "✅",
    QuestionStatus.MARKED_FOR_REVIEW: "🚩",
    QuestionStatus.UNANSWERED: "",
}


def render_candidate(record: SessionRecord) -> None:
    """수험자 사진/이름/수험번호/서명."""
    candidate = record.candidate
    photo_col, info_col = st.columns([1, 2])
    with photo_col:
        if candidate.photo_url:
            st.image(candidate.photo_url, width=64)
        else:
            initial = candidate.name[:1] if candidate.name else "?"
            st.markdown(f'<div class="candidate-initial">{initial}</div>', unsafe_allow_html=True)
    with info_col:
        st.markdown(f"**{candidate.name or '-'}**")
        st.caption(candidate.roll_number or "-")
    if candidate.signature_url:
        st.caption("서명")
        st.image(candidate.signature_url, width=120)


def render(
    palette: list[PaletteCell],
    summary: dict,
    on_jump: Optional[Callable[[int], None]] = None,
) -> None:
    """
    진행 현황과 문제 번호 버튼 그리드를 렌더링한다.
    on_jump 가 없으면 번호 버튼은 비활성 (제출 완료 화면).

    색상 코딩 (우선순위 순):
      - 제출 완료: 잠금
      - 답함:     초록
      - 검토 표시: 노랑 깃발
      - 미답:     회색
    """
    total = summary.get("total", 0)
    answered = summary.get("answered", 0)

    # ── 진행 현황 ──────────────────────────────────────────────────────────
    st.markdown(
        f"""
        <div style="display:flex; justify-content:space-between;
                    font-size:0.8rem; color:#6b7280; margin-bottom:4px;">
            <span>진행률</span>
            <span><b>{answered}</b> / {total}</span>
        </div>
        """,
        unsafe_allow_html=True,
    )
    st.progress(summary.get("progress", 0.0))
    st.caption(f"답함 {answered} · 검토 {summary.get('marked', 0)} · 미답 {summary.get('unanswered', 0)}")

    # ── 문제 번호 그리드 (5열) ─────────────────────────────────────────────
    cols_per_row = 5

    for row_start in range(0, len(palette), cols_per_row):
        row_cells = palette[row_start : row_start + cols_per_row]
        cols = st.columns(cols_per_row)
        for col_idx, cell in enumerate(row_cells):
            label = f"{_STATUS_ICON[cell.status]}{cell.number}"
            with cols[col_idx]:
                if st.button(
                    label,
                    key=f"nav_{cell.index}",
                    type="primary" if cell.is_current else "secondary",
                    help=f"문제 {cell.number}번으로 이동",
                    disabled=on_jump is None,
                ):
                    on_jump(cell.index)
                    st.rerun()

    # ── 범례 ──────────────────────────────────────────────────────────────
    st.caption("✅ 답함 · 🚩 검토 표시 · 숫자만: 미답 · 🔒 제출 완료")
