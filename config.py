import os

# 기본 디렉토리 설정
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# 경로 설정
LOG_FILE = os.path.join(BASE_DIR, "launch.log")
PANEL_SCRIPT = os.path.join(BASE_DIR, "panel_app.py")

# 센터 서버 설정
DEFAULT_HOST = os.getenv("HOST", "127.0.0.1")
DEFAULT_PORT = int(os.getenv("PORT", "8000"))
PANEL_PORT = int(os.getenv("PANEL_PORT", "8501"))
CENTER_SERVER_URL = os.getenv("CENTER_SERVER_URL", f"http://{DEFAULT_HOST}:{DEFAULT_PORT}")
DEFAULT_TIMEOUT = float(os.getenv("CENTER_TIMEOUT", "15.0"))

# 세션 설정
SESSION_TOKEN_BYTES = 32
SESSION_TTL = 3600 * 6       # 제출/만료 후 서버 메모리에서 정리되기까지 (6시간)
EXPIRY_GRACE_SECONDS = 300   # 마감 후 이 시간이 지나도 제출되지 않은 세션은 만료(410)
CLEANUP_INTERVAL_SECONDS = 300

# 시험 진행 설정
DEFAULT_EXAM_DURATION_MINUTES = 60
TICK_INTERVAL_SECONDS = 1.0
LOW_TIME_THRESHOLD_SECONDS = 300     # 5분 미만이면 경고 표시
WAITING_POLL_SECONDS = 5.0           # 대기실에서 세션 상태 재확인 주기
SUBMIT_RETRY_SECONDS = 5.0           # 시간 종료 자동 제출 실패 시 재시도 간격

# 개발용 데모 문제 허용 여부 (실제 시험에서는 False)
ALLOW_DEMO_QUESTIONS = os.getenv("ALLOW_DEMO_QUESTIONS", "0").lower() in ("1", "true", "yes")

# 화면 이탈 시 자동 제출 여부 (기본: 이탈해도 재접속하면 이어서 응시)
SUBMIT_ON_LEAVE = os.getenv("SUBMIT_ON_LEAVE", "0").lower() in ("1", "true", "yes")
