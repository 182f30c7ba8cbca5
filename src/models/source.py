"""Source models for incremental synchronization.

설정된 소스(SourceDescriptor)와 소스별 동기화 상태(SourceState)를 정의합니다.
"""

from datetime import UTC, date, datetime, timedelta
from typing import Any
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator
from pydantic.alias_generators import to_camel

# 백오프 최대 일수
MAX_BACKOFF_DAYS = 7


class SourceKind(str, Enum):
    """소스 종류."""

    BOOKMARK_COLLECTION = "bookmark-collection"
    VIDEO_PLAYLIST = "video-playlist"
    VIDEO_CHANNEL = "video-channel"


class Cadence(str, Enum):
    """수집 주기."""

    ONCE = "once"  # 첫 성공 후 다시 수집하지 않음
    DAILY = "daily"
    WEEKLY_ONCE = "weekly-once"  # 첫 성공까지 매 실행(bootstrap), 이후 7일 간격


class SourceDescriptor(BaseModel):
    """설정 파일에서 읽은 소스 정보 (실행 중 불변).

    Config file: sources.json
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="안정적인 소스 키 (예: raindrop:0)")
    kind: SourceKind = Field(..., description="소스 종류")
    source_id: str = Field(
        ..., min_length=1, description="원격 ID (컬렉션 ID / 플레이리스트 ID / 채널 핸들)"
    )
    cadence: Cadence = Field(Cadence.DAILY, description="수집 주기")
    lookback_window_days: int = Field(1, ge=0, description="수집 기간 (일, 0=전체)")

    name: str | None = Field(None, description="표시 이름")
    is_active: bool = Field(True, description="False면 일시 중지 (상태 변경 없음)")
    per_page: int = Field(50, ge=1, le=50, description="북마크 페이지 크기")

    def since(self, now: datetime) -> datetime | None:
        """수집 윈도우 시작 시각. lookback이 0이면 None (전체)."""
        if self.lookback_window_days <= 0:
            return None
        return now - timedelta(days=self.lookback_window_days)


class SourceState(BaseModel):
    """소스별 동기화 상태. SyncScheduler만 변경합니다.

    State file: ingest-state.json (collection: sources)
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    last_run_at: datetime | None = Field(None, description="마지막 시도 시간")
    last_success_at: datetime | None = Field(None, description="마지막 성공 시간")
    last_error_at: datetime | None = Field(None, description="마지막 실패 시간")
    consecutive_failures: int = Field(0, ge=0, description="연속 실패 횟수")
    retry_not_before_date: date | None = Field(
        None, description="이 날짜 전까지는 수집하지 않음 (백오프)"
    )
    bootstrap_pending: bool = Field(False, description="weekly-once 첫 성공 대기 중")
    seen_ids: list[str] = Field(
        default_factory=list, description="이미 수집한 소스 로컬 ID"
    )

    _seen: set[str] = PrivateAttr(default_factory=set)

    @field_validator("last_run_at", "last_success_at", "last_error_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        """타임존 없는 시각은 UTC로 간주."""
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def model_post_init(self, __context: Any) -> None:
        self._seen = set(self.seen_ids)

    @classmethod
    def initial(cls, descriptor: SourceDescriptor) -> "SourceState":
        """처음 보는 소스의 초기 상태."""
        return cls(bootstrap_pending=descriptor.cadence == Cadence.WEEKLY_ONCE)

    def reconcile(self, descriptor: SourceDescriptor) -> None:
        """설정 변경(주기 변경) 후에도 bootstrap 불변식 유지.

        bootstrap_pending은 weekly-once이면서 성공 기록이 없는 소스에서만 True.
        """
        if descriptor.cadence != Cadence.WEEKLY_ONCE or self.last_success_at:
            self.bootstrap_pending = False

    def in_backoff(self, today: date) -> bool:
        """백오프 윈도우 안인지 확인."""
        return self.retry_not_before_date is not None and today < self.retry_not_before_date

    def has_seen(self, source_local_id: str) -> bool:
        return source_local_id in self._seen

    def mark_seen(self, source_local_id: str) -> None:
        if source_local_id not in self._seen:
            self._seen.add(source_local_id)
            self.seen_ids.append(source_local_id)

    def record_success(self, now: datetime) -> None:
        """성공 전이. 실패 카운터와 백오프 날짜는 함께 리셋."""
        self.last_run_at = now
        self.last_success_at = now
        self.last_error_at = None
        self.consecutive_failures = 0
        self.retry_not_before_date = None
        if self.bootstrap_pending:
            self.bootstrap_pending = False

    def record_failure(self, now: datetime) -> None:
        """실패 전이. bootstrap_pending은 건드리지 않음."""
        self.last_run_at = now
        self.last_error_at = now
        self.consecutive_failures += 1
        backoff_days = min(self.consecutive_failures, MAX_BACKOFF_DAYS)
        self.retry_not_before_date = now.date() + timedelta(days=backoff_days)
