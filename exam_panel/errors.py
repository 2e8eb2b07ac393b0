"""
errors.py — 수험 패널 예외 계층

화면에 도달하는 오류(세션 확인, 문제 로드, 제출)와 삼켜지는 오류(자동 저장)를
구분할 수 있도록 센터 호출 실패는 모두 CenterError 아래에 둔다.
"""


class ExamPanelError(Exception):
    """수험 패널 최상위 예외"""


class MissingTokenError(ExamPanelError):
    """세션 토큰 없음 — 네트워크 호출 전에 즉시 종료"""


# ── 센터 서버 호출 실패 ──────────────────────────────────────────────────────

class CenterError(ExamPanelError):
    """센터 서버 호출 실패"""


class CenterUnavailableError(CenterError):
    """네트워크 오류 또는 서버 5xx — 일시적 장애"""


class CenterResponseError(CenterError):
    """예상하지 못한 4xx 응답 또는 형식이 잘못된 응답"""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class SessionResolutionError(CenterError):
    """토큰을 유효한 세션으로 확인할 수 없음 — 재시도하지 않음"""


class SessionNotFoundError(SessionResolutionError):
    pass


class SessionExpiredError(SessionResolutionError):
    pass


class SessionInvalidError(SessionResolutionError):
    pass


# ── 패널 내부 ────────────────────────────────────────────────────────────────

class QuestionLoadError(ExamPanelError):
    """문제 조회 실패 — 수험자가 직접 재시도해야 함"""


class ResponseLockedError(ExamPanelError):
    """제출 완료(또는 시간 종료) 후 답안 변경 시도"""


class InvalidAnswerError(ExamPanelError):
    """해당 문제에 없는 보기 라벨"""


class ConfirmationRequiredError(ExamPanelError):
    """수동 제출은 확인 단계를 거쳐야 함"""
