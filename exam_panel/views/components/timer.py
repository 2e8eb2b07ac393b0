"""
views/components/timer.py

남은 시험 시간을 렌더링하는 컴포넌트.
시간 계산은 CountdownController가 하고, 여기서는 표시만 한다.
경고 기준(기본 5분) 미만이면 빨간색 깜빡임 표시.
"""

import streamlit as st

from exam_panel.services.countdown import format_remaining


def render(remaining: float, low_time: bool, expired: bool = False) -> None:
    """
    남은 시간 표시.

    Args:
        remaining: 남은 시간 (초)
        low_time:  경고 기준 미만 여부
        expired:   시간 종료 여부
    """
    css_class = "timer-display timer-warning" if low_time else "timer-display"
    icon = "⚠️ " if low_time else "⏱ "

    st.markdown(
        f'<div class="{css_class}">{icon}{format_remaining(remaining)}</div>',
        unsafe_allow_html=True,
    )

    if expired:
        st.warning("⏰ 시험 시간이 종료되었습니다. 답안을 자동 제출합니다.")
