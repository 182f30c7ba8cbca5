"""Token usage log models.

스테이지/모델/아이템별 토큰 사용량 기록 (pipeline-usage.json).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UsageEntry(BaseModel):
    """호출 1회의 사용량."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    item_id: str
    provider_id: str
    input: int = 0
    output: int = 0
    total: int = 0
    ts: datetime


class ModelUsage(BaseModel):
    """스테이지 내 모델별 누적 사용량."""

    total: int = 0
    items: list[UsageEntry] = Field(default_factory=list)


class UsageRun(BaseModel):
    """실행 1회의 사용량 기록."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    run_id: str
    started_at: datetime
    ended_at: datetime | None = None
    finished: bool = False
    stages: dict[str, dict[str, ModelUsage]] = Field(default_factory=dict)

    def total_tokens(self) -> int:
        return sum(
            usage.total for models in self.stages.values() for usage in models.values()
        )
