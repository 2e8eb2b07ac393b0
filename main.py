"""
main.py — 시험 센터 데모 실행 진입점

센터 서버(FastAPI)를 띄우고, 데모 시험과 수험자 세션을 만든 뒤
수험자 패널(Streamlit)을 열어준다.
"""

import argparse
import os
import socket
import subprocess
import sys
import time
import threading
import logging
import traceback
import webbrowser

# ── 패키지 경로 설정 (반드시 최상단) ──────────────────────────────────────────
_BASE_DIR = os.path.dirname(os.path.abspath(__file__))
if _BASE_DIR not in sys.path:
    sys.path.insert(0, _BASE_DIR)

from config import BASE_DIR, LOG_FILE, DEFAULT_HOST, PANEL_PORT, PANEL_SCRIPT

# ── 로깅 설정 ────────────────────────────────────────────────────────────────
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

# ── 서버 및 네트워크 유틸 ───────────────────────────────────────────────────

def _find_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((DEFAULT_HOST, 0))
        return s.getsockname()[1]

def _wait_for_server(port: int, timeout: float = 15.0) -> bool:
    deadline = time.time() + timeout
    while time.time() < deadline:
        try:
            with socket.create_connection((DEFAULT_HOST, port), timeout=0.5):
                return True
        except OSError:
            time.sleep(0.1)
    return False

def _start_server(port: int) -> None:
    try:
        import uvicorn
        from api.app import create_app
        logger.info(f"센터 서버 시작 - Port: {port}")
        app = create_app()
        uvicorn.run(app, host=DEFAULT_HOST, port=port, log_level="error")
    except Exception:
        logger.error(f"서버 오류 발생:\n{traceback.format_exc()}")

def _seed_demo(duration_minutes: int, autostart: bool) -> str:
    """데모 시험 + 수험자 세션 생성. 세션 토큰 반환."""
    import api.session as session

    exam = session.register_exam("Demo Center Exam", duration_minutes * 60, questions=[])
    state = session.create_session(
        exam["id"],
        {"name": "Demo Candidate", "roll_number": "DEMO-0001"},
        seat_number="A-01",
    )
    token = state["session_token"]
    if autostart:
        session.start_session(token)
    logger.info(f"데모 세션 생성: exam={exam['id']} token={token[:8]}… autostart={autostart}")
    return token

def _start_panel(server_url: str) -> subprocess.Popen:
    env = dict(os.environ, CENTER_SERVER_URL=server_url, ALLOW_DEMO_QUESTIONS="1")
    cmd = [
        sys.executable, "-m", "streamlit", "run", PANEL_SCRIPT,
        "--server.port", str(PANEL_PORT),
        "--server.headless", "true",
    ]
    logger.info(f"수험자 패널 시작 - Port: {PANEL_PORT}")
    return subprocess.Popen(cmd, env=env, cwd=BASE_DIR)

# ── 메인 실행 ────────────────────────────────────────────────────────────────

def main() -> None:
    parser = argparse.ArgumentParser(description="시험 센터 서버 + 수험자 패널 데모 실행")
    parser.add_argument("--duration", type=int, default=10, help="데모 시험 제한 시간 (분, 기본 10)")
    parser.add_argument("--wait", action="store_true", help="세션을 WAITING 상태로 두고 대기실부터 시작")
    parser.add_argument("--no-browser", action="store_true", help="브라우저를 열지 않음")
    args = parser.parse_args()

    logger.info("=== Exam Center Demo Started ===")
    os.chdir(BASE_DIR)

    port = _find_free_port()
    server_thread = threading.Thread(target=_start_server, args=(port,), daemon=True)
    server_thread.start()

    if not _wait_for_server(port):
        logger.error("서버 시작 제한 시간을 초과했습니다.")
        sys.exit(1)

    server_url = f"http://{DEFAULT_HOST}:{port}"
    token = _seed_demo(args.duration, autostart=not args.wait)
    if args.wait:
        logger.info(f"시험 시작: curl -X POST {server_url}/api/center-admin/sessions/{token}/start")

    panel = _start_panel(server_url)
    if _wait_for_server(PANEL_PORT, timeout=30.0):
        url = f"http://{DEFAULT_HOST}:{PANEL_PORT}/?token={token}"
        logger.info(f"수험자 패널 준비 완료: {url}")
        if not args.no_browser:
            webbrowser.open(url)
    else:
        logger.error("수험자 패널 시작 제한 시간을 초과했습니다.")

    # 메인 스레드 유지
    try:
        panel.wait()
    except KeyboardInterrupt:
        logger.info("사용자에 의해 종료되었습니다.")
    finally:
        panel.terminate()


if __name__ == "__main__":
    main()
