from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

OPTION_LABELS = ("A", "B", "C", "D")


class Question(BaseModel):
    """
    센터 시험 문제 모델
    Pydantic v2 적용. 세션 동안 변경되지 않는다 (frozen).
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int = Field(
        ...,
        description="문제 ID (고유 식별자, 조회 순서가 곧 문제 순서)"
    )
    question_text: str = Field(
        ...,
        min_length=1,
        description="발문/문제 내용"
    )
    option_a: Optional[str] = Field(None, description="보기 A")
    option_b: Optional[str] = Field(None, description="보기 B")
    option_c: Optional[str] = Field(None, description="보기 C (없을 수 있음)")
    option_d: Optional[str] = Field(None, description="보기 D (없을 수 있음)")
    is_demo: bool = Field(
        default=False,
        description="개발용 데모 문제 여부. 실제 시험 세션에서는 사용 금지."
    )

    @field_validator("option_a", "option_b", "option_c", "option_d", mode="before")
    @classmethod
    def blank_option_is_absent(cls, v: Optional[str]) -> Optional[str]:
        """서버가 없는 보기를 빈 문자열로 보내는 경우 None으로 정규화."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @model_validator(mode="after")
    def validate_option_count(self) -> "Question":
        """
        검증 로직: 보기는 최소 2개 이상이어야 한다.
        """
        if len(self.labels) < 2:
            raise ValueError(f"문제 {self.id}: 보기(options)는 최소 2개 이상의 항목이 필요합니다.")
        return self

    @property
    def options(self) -> Dict[str, str]:
        """존재하는 보기만 {라벨: 내용} 형태로 반환 (A→D 순서 유지)."""
        values = (self.option_a, self.option_b, self.option_c, self.option_d)
        return {label: text for label, text in zip(OPTION_LABELS, values) if text is not None}

    @property
    def labels(self) -> List[str]:
        return list(self.options)
