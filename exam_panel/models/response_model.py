"""
models/response_model.py

문제별 응답(OMR 한 칸)을 담는 모델.
서버와 주고받는 JSON은 camelCase (questionId, selectedAnswer, ...).
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Response(BaseModel):
    """
    한 문제에 대한 수험자의 현재 응답 상태.

    Attributes:
        question_id:       대상 Question.id
        selected_answer:   선택한 보기 라벨 ("A".."D"). 미응답이면 빈 문자열.
        marked_for_review: 검토 표시 여부. 답 선택 여부와 무관.
        time_spent:        이 문제에 머문 누적 시간(초). 참고용이며 마감 판단에 쓰지 않음.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question_id: int
    selected_answer: str = Field(default="", description="선택한 보기 라벨, 미응답이면 빈 문자열")
    marked_for_review: bool = False
    time_spent: float = Field(default=0.0, ge=0)

    @property
    def is_answered(self) -> bool:
        return bool(self.selected_answer)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)
