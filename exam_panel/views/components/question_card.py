"""
views/components/question_card.py

단일 문제(Question)를 카드 형태로 렌더링하고
사용자가 고른 보기 라벨을 반환하는 컴포넌트.
"""

from __future__ import annotations

from typing import Optional

import streamlit as st

from exam_panel.models.question_model import Question


def render(
    question: Question,
    question_number: int,
    total: int,
    saved_answer: str = "",
    disabled: bool = False,
) -> Optional[str]:
    """
    문제 카드를 렌더링하고 사용자가 선택한 보기 라벨을 반환한다.

    Args:
        question:        렌더링할 Question 객체
        question_number: 전체 문제 중 몇 번째 문제인지 (1-based 표시용)
        total:           전체 문제 수
        saved_answer:    저장소에 있는 현재 선택 ("" 이면 미응답)
        disabled:        제출 완료/시간 종료 시 선택 불가

    Returns:
        선택된 보기 라벨 ("A".."D"), 아무것도 선택하지 않은 경우 None
    """

    # ── 문제 헤더 ──────────────────────────────────────────────────────────
    st.markdown(
        f'<span class="question-number-badge">문제 {question_number} / {total}</span>',
        unsafe_allow_html=True,
    )
    if question.is_demo:
        st.info("개발용 데모 문제입니다. 실제 시험 문제가 아닙니다.")

    # ── 문제 본문 ──────────────────────────────────────────────────────────
    st.markdown(
        f"""
        <div class="question-card">
            <p style="font-size:1.05rem; font-weight:600; color:#1a1a2e;
                      line-height:1.7; margin:0;">
                {question.question_text}
            </p>
        </div>
        """,
        unsafe_allow_html=True,
    )

    # ── 보기 선택 (Radio) ─────────────────────────────────────────────────
    options = question.options
    labels = list(options)
    default_index = labels.index(saved_answer) if saved_answer in options else None

    # 문제마다 + 저장된 답마다 키를 달리해 저장소 값이 항상 화면의 기준이 되도록 함
    selected = st.radio(
        "보기를 선택하세요",
        options=labels,
        index=default_index,
        format_func=lambda label: f"({label}) {options[label]}",
        key=f"radio_{question.id}_{saved_answer or 'none'}",
        label_visibility="collapsed",
        disabled=disabled,
    )

    return selected
