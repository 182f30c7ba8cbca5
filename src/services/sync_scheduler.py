"""Per-source incremental synchronization.

소스별로 수집 여부(백오프 → 주기 → once 완료)를 결정하고, Fetcher 결과를
2단계 중복 제거(seen_ids → 전역 아이템 ID) 후 아이템 저장소에 추가합니다.
아이템은 1건 단위로 저장한 뒤 seen_ids를 기록하므로, 중간에 중단되어도
아이템을 잃지 않고 다음 실행에서 다시 검토될 뿐입니다.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum

import structlog

from src.agent.domains.collector.tools.base import Fetcher, RawItem
from src.errors import PipelineFatalError
from src.models.item import Item, generate_item_id
from src.models.source import Cadence, SourceDescriptor, SourceKind, SourceState
from src.repositories.item_repo import ItemRepository
from src.repositories.state_repo import StateRepository

logger = structlog.get_logger(__name__)

DAILY_INTERVAL = timedelta(days=1)
WEEKLY_INTERVAL = timedelta(days=7)


class SyncDecision(str, Enum):
    """소스별 실행 결정."""

    RUN = "run"
    SKIP_BACKOFF = "backoff"
    SKIP_CADENCE = "cadence"
    SKIP_ONCE_DONE = "once_done"
    SKIP_INACTIVE = "inactive"


def decide(state: SourceState, descriptor: SourceDescriptor, now: datetime) -> SyncDecision:
    """이번 실행에서 소스를 수집할지 결정.

    백오프가 항상 먼저 평가되며, bootstrap 중인 소스도 백오프를 따릅니다.

    Args:
        state: 소스 상태.
        descriptor: 소스 설정.
        now: 현재 시각 (UTC).

    Returns:
        SyncDecision.
    """
    if not descriptor.is_active:
        return SyncDecision.SKIP_INACTIVE

    today = now.date()
    if state.in_backoff(today):
        return SyncDecision.SKIP_BACKOFF

    if descriptor.cadence == Cadence.WEEKLY_ONCE and not state.bootstrap_pending:
        if state.last_run_at is not None and now - state.last_run_at < WEEKLY_INTERVAL:
            return SyncDecision.SKIP_CADENCE

    if descriptor.cadence == Cadence.ONCE and state.last_success_at is not None:
        return SyncDecision.SKIP_ONCE_DONE

    # daily: 마지막 시도 후 24시간
    if descriptor.cadence == Cadence.DAILY and state.last_run_at is not None:
        if now - state.last_run_at < DAILY_INTERVAL:
            return SyncDecision.SKIP_CADENCE

    return SyncDecision.RUN


@dataclass
class SourceOutcome:
    """소스 1개의 동기화 결과."""

    key: str
    decision: SyncDecision
    fetched: int = 0
    ingested: int = 0
    duplicates: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.decision == SyncDecision.RUN and self.error is None


@dataclass
class SyncReport:
    """실행 1회의 동기화 결과."""

    outcomes: list[SourceOutcome] = field(default_factory=list)

    @property
    def ingested(self) -> int:
        return sum(o.ingested for o in self.outcomes)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.error is not None)

    def to_dict(self) -> dict[str, object]:
        return {
            "ingested": self.ingested,
            "failed": self.failed,
            "sources": [
                {
                    "key": o.key,
                    "decision": o.decision.value,
                    "fetched": o.fetched,
                    "ingested": o.ingested,
                    "duplicates": o.duplicates,
                    "error": o.error,
                }
                for o in self.outcomes
            ],
        }


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SyncScheduler:
    """소스 동기화 스케줄러.

    소스는 설정 순서대로, 아이템은 Fetcher가 반환한 순서대로 하나씩 처리합니다.
    한 소스의 수집 실패는 해당 소스의 백오프로만 이어지고 다음 소스로 진행합니다.
    """

    def __init__(
        self,
        descriptors: Sequence[SourceDescriptor],
        fetchers: Mapping[SourceKind, Fetcher],
        state_repo: StateRepository,
        item_repo: ItemRepository,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """SyncScheduler 초기화.

        Args:
            descriptors: 처리 순서대로 정렬된 소스 설정.
            fetchers: 소스 종류 → Fetcher.
            state_repo: 소스 상태 저장소.
            item_repo: 아이템 저장소.
            clock: 현재 시각 함수 (테스트용).
        """
        self.descriptors = list(descriptors)
        self.fetchers = fetchers
        self.state_repo = state_repo
        self.item_repo = item_repo
        self.clock = clock

    def run(self) -> SyncReport:
        """모든 소스 동기화.

        Returns:
            SyncReport.

        Raises:
            PipelineFatalError: 설정/저장소 오류 (복구 불가).
        """
        report = SyncReport()
        for descriptor in self.descriptors:
            report.outcomes.append(self.sync_source(descriptor))

        logger.info(
            "sync_completed",
            sources=len(report.outcomes),
            ingested=report.ingested,
            failed=report.failed,
        )
        return report

    def sync_source(self, descriptor: SourceDescriptor) -> SourceOutcome:
        """단일 소스 동기화."""
        now = self.clock()
        state = self.state_repo.get(descriptor)

        decision = decide(state, descriptor, now)
        if decision != SyncDecision.RUN:
            logger.info(
                "source_skipped",
                source_key=descriptor.key,
                reason=decision.value,
                retry_not_before=(
                    state.retry_not_before_date.isoformat()
                    if state.retry_not_before_date
                    else None
                ),
            )
            return SourceOutcome(key=descriptor.key, decision=decision)

        fetcher = self.fetchers.get(descriptor.kind)
        if fetcher is None:
            raise PipelineFatalError(f"No fetcher for source kind '{descriptor.kind.value}'")

        outcome = SourceOutcome(key=descriptor.key, decision=decision)
        try:
            for raw in fetcher.fetch(descriptor, descriptor.since(now)):
                outcome.fetched += 1
                self._ingest(descriptor, state, raw, outcome)
        except PipelineFatalError:
            raise
        except Exception as e:
            outcome.error = str(e)
            state.record_failure(now)
            self.state_repo.put(descriptor.key, state)
            logger.warning(
                "source_sync_failed",
                source_key=descriptor.key,
                error=str(e),
                error_type=type(e).__name__,
                consecutive_failures=state.consecutive_failures,
                retry_not_before=state.retry_not_before_date.isoformat()
                if state.retry_not_before_date
                else None,
            )
            return outcome

        state.record_success(now)
        self.state_repo.put(descriptor.key, state)
        logger.info(
            "source_sync_succeeded",
            source_key=descriptor.key,
            fetched=outcome.fetched,
            ingested=outcome.ingested,
            duplicates=outcome.duplicates,
        )
        return outcome

    def _ingest(
        self,
        descriptor: SourceDescriptor,
        state: SourceState,
        raw: RawItem,
        outcome: SourceOutcome,
    ) -> None:
        """후보 1건 처리: 저장 → seen 기록 순서."""
        if state.has_seen(raw.source_local_id):
            outcome.duplicates += 1
            return

        item_id = generate_item_id(descriptor.kind, raw.source_local_id)
        if self.item_repo.exists(item_id):
            # 다른 소스가 먼저 수집한 아이템. 다음 실행에서 다시 보지 않도록 seen만 기록
            outcome.duplicates += 1
        else:
            self.item_repo.append(
                Item(
                    id=item_id,
                    title=raw.title,
                    url=raw.url,
                    source_type=descriptor.kind,
                    source_key=descriptor.key,
                    author=raw.author,
                    tags=list(raw.tags),
                    published_at=raw.published_at,
                    ingested_at=self.clock(),
                )
            )
            outcome.ingested += 1
            logger.info("item_ingested", source_key=descriptor.key, item_id=item_id)

        state.mark_seen(raw.source_local_id)
        self.state_repo.put(descriptor.key, state)
