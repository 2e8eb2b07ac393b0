"""
models/session_state.py

수험 세션 모델 (세션 확인 API 응답).
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
UI 코드 없음.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from config import DEFAULT_EXAM_DURATION_MINUTES


class SessionStatus(str, Enum):
    """
    세션 상태.

    WAITING → IN_PROGRESS 는 센터 관리자가 외부에서 전환하고,
    IN_PROGRESS → SUBMITTED 는 이 패널이 수행하는 유일한 전환이다.
    """
    WAITING = "WAITING"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"
    INVALID = "INVALID"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class SessionInfo(_WireModel):
    """
    Attributes:
        session_token:   세션 토큰 (모든 호출에 제시하는 유일한 인증 수단)
        status:          세션 상태
        exam_start_time: 시험 시작 시각 (IN_PROGRESS 이후에만 존재)
        seat_number:     좌석 번호 (표시용)
    """
    session_token: str = ""
    status: SessionStatus = SessionStatus.WAITING
    exam_start_time: Optional[datetime] = None
    seat_number: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def unknown_status_is_invalid(cls, v: Any) -> Any:
        # 알 수 없는 상태(TERMINATED, PAUSED 등)는 응시 불가로 취급
        if isinstance(v, str) and v not in SessionStatus.__members__:
            return SessionStatus.INVALID
        return v

    @field_validator("exam_start_time")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """타임존 정보가 없는 시각은 UTC로 간주."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class Candidate(_WireModel):
    """수험자 표시 정보. 패널은 화면 표시용 문자열로만 취급한다."""
    name: str = ""
    roll_number: str = ""
    photo_url: Optional[str] = None
    signature_url: Optional[str] = None


class ExamInfo(_WireModel):
    """
    시험 메타데이터.

    서버가 durationSeconds 대신 duration(분)만 보내는 경우 초 단위로 환산한다.
    """
    title: str = ""
    duration_seconds: int = Field(
        default=DEFAULT_EXAM_DURATION_MINUTES * 60,
        ge=0,
        description="시험 제한 시간 (초)"
    )

    @model_validator(mode="before")
    @classmethod
    def minutes_to_seconds(cls, data: Any) -> Any:
        if isinstance(data, dict) and "durationSeconds" not in data and "duration_seconds" not in data:
            minutes = data.get("duration")
            if minutes:
                data = {**data, "durationSeconds": int(minutes) * 60}
        return data


class SessionRecord(_WireModel):
    """세션 확인 결과: 세션 + 수험자 + 시험 정보."""
    session: SessionInfo
    candidate: Candidate = Field(default_factory=Candidate)
    exam: ExamInfo = Field(default_factory=ExamInfo)

    @property
    def status(self) -> SessionStatus:
        return self.session.status

    @property
    def deadline(self) -> Optional[float]:
        """
        마감 시각 (Unix timestamp) = 시작 시각 + 제한 시간.
        시작 전이면 None.
        """
        if self.session.exam_start_time is None:
            return None
        return self.session.exam_start_time.timestamp() + self.exam.duration_seconds
