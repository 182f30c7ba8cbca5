"""Item model for ingested knowledge entries.

소스에서 수집되어 정규화된 아이템과 후속 스테이지(요약/분류) 결과를 관리합니다.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.models.source import SourceKind

# 소스 종류별 전역 ID 네임스페이스.
# 같은 영상은 플레이리스트/채널 어느 쪽에서 수집돼도 같은 아이템이다.
ID_NAMESPACES: dict[SourceKind, str] = {
    SourceKind.BOOKMARK_COLLECTION: "raindrop",
    SourceKind.VIDEO_PLAYLIST: "yt",
    SourceKind.VIDEO_CHANNEL: "yt",
}


def generate_item_id(kind: SourceKind, source_local_id: str) -> str:
    """전역 아이템 ID 생성.

    Format: {namespace}:{source_local_id} (예: yt:abc123)
    """
    if not source_local_id:
        raise ValueError("source_local_id is required")
    return f"{ID_NAMESPACES[kind]}:{source_local_id}"


class Usefulness(str, Enum):
    """프로젝트 관점 유용도."""

    HIGH = "HIGH"
    MODERATE = "MODERATE"
    LOW = "LOW"


class Classification(BaseModel):
    """프로젝트별 분류 결과."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    project_key: str
    project: str
    usefulness: Usefulness
    reason: str = ""
    next_steps: str = ""
    model_used: str
    provider_id: str
    classified_at: datetime


class Item(BaseModel):
    """정규화된 콘텐츠 아이템.

    Item file: knowledge.json (collection: items)
    id는 생성 이후 절대 바뀌지 않습니다.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="{namespace}:{source_local_id}")
    title: str = Field(..., description="제목")
    url: str | None = Field(None, description="원문 URL")
    source_type: SourceKind = Field(..., description="소스 종류")
    source_key: str = Field(..., description="최초 수집한 소스 키")
    author: str | None = Field(None, description="작성자/채널/도메인")
    tags: list[str] = Field(default_factory=list)
    published_at: datetime | None = Field(None, description="원문 발행일")
    ingested_at: datetime = Field(..., description="수집 시간")

    # 스테이지에서 추가되는 필드
    summary: str | None = Field(None, description="짧은 요약 (다이제스트용)")
    description: str | None = Field(None, description="긴 설명 (지식베이스용)")
    enriched_by: dict[str, Any] | None = Field(None, description="요약 모델 정보")
    classifications: list[Classification] = Field(default_factory=list)

    def is_classified_for(self, project_key: str) -> bool:
        """해당 프로젝트 분류 완료 여부."""
        return any(c.project_key == project_key for c in self.classifications)

    def material(self) -> str:
        """분류 입력용 본문 (description > summary > 없음)."""
        return self.description or self.summary or ""
