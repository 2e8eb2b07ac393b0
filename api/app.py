"""
api/app.py — 시험 센터 FastAPI 앱 인스턴스 + 만료 세션 정리
"""

import logging
import threading
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import router
import api.session as session
from config import CLEANUP_INTERVAL_SECONDS


def create_app(cleanup: bool = True) -> FastAPI:
    app = FastAPI(title="Exam Center Server", docs_url=None, redoc_url=None)

    # CORS (센터 LAN 안의 여러 단말에서 접근)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)

    @app.get("/health")
    async def health():
        return {"ok": True}

    # 만료 세션 주기적 정리 (5분마다)
    def _cleanup_loop():
        while True:
            time.sleep(CLEANUP_INTERVAL_SECONDS)
            removed = session.cleanup_expired()
            if removed:
                logging.getLogger(__name__).info(f"만료 세션 {removed}개 정리")

    if cleanup:
        t = threading.Thread(target=_cleanup_loop, daemon=True)
        t.start()

    return app
