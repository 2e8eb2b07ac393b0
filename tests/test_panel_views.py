import logging

from streamlit.testing.v1 import AppTest


def _completion_screen():
    from exam_panel.services.exam_session import PanelPhase, PanelView
    from exam_panel.services.navigator import PaletteCell, QuestionStatus
    from exam_panel.views import status_view

    palette = [
        PaletteCell(
            index=i, number=i + 1, question_id=i + 1, status=QuestionStatus.LOCKED,
            is_current=i == 0, marked_for_review=False,
        )
        for i in range(3)
    ]
    summary = {"total": 3, "answered": 1, "unanswered": 2, "marked": 0, "progress": 1 / 3}
    status_view.render_submitted(PanelView(phase=PanelPhase.SUBMITTED, palette=palette, summary=summary))


def test_completion_screen_shows_locked_palette():
    at = AppTest.from_function(_completion_screen)
    at.run()

    assert not at.exception
    assert at.success[0].value == "✅ 시험 제출 완료"
    buttons = at.sidebar.button
    assert [b.label for b in buttons] == ["🔒1", "🔒2", "🔒3"]
    assert all(b.disabled for b in buttons)


def test_panel_without_token_shows_error_and_logs(caplog):
    at = AppTest.from_file("../panel_app.py", default_timeout=10)

    with caplog.at_level(logging.INFO):
        at.run()

    assert not at.exception
    assert at.error[0].value == "세션 토큰이 없습니다."
    assert "수험 화면 열림 (MISSING_TOKEN)" in caplog.text
