"""Repository for token usage runs.

pipeline-usage.json runs 컬렉션에 대한 데이터 접근 레이어.
"""

from datetime import UTC, datetime

from src.adapters.json_store import JsonDocumentStore
from src.models.provider import ProviderCallResult
from src.models.usage import ModelUsage, UsageEntry, UsageRun
from src.repositories.base import BaseRepository


class UsageRepository(BaseRepository[UsageRun]):
    """UsageRun Repository.

    Collection: runs
    """

    collection_name = "runs"
    model_class = UsageRun

    def __init__(self, store: JsonDocumentStore) -> None:
        super().__init__(store)

    def start_run(self, run_id: str, started_at: datetime | None = None) -> UsageRun:
        """새 실행 기록 시작."""
        run = UsageRun(run_id=run_id, started_at=started_at or datetime.now(UTC))
        self.save(run_id, run)
        return run

    def record(
        self,
        run_id: str,
        stage: str,
        item_id: str,
        result: ProviderCallResult,
    ) -> None:
        """성공한 호출 1회의 사용량 기록.

        Args:
            run_id: 실행 ID.
            stage: 스테이지 이름 (enrich, classify).
            item_id: 아이템 ID.
            result: 프로바이더 호출 결과.
        """
        run = self.get_by_id(run_id) or UsageRun(
            run_id=run_id, started_at=datetime.now(UTC)
        )
        usage = run.stages.setdefault(stage, {}).setdefault(result.model, ModelUsage())

        tokens = result.tokens_used
        usage.total += tokens.total_tokens
        usage.items.append(
            UsageEntry(
                item_id=item_id,
                provider_id=result.provider_id,
                input=tokens.input_tokens,
                output=tokens.output_tokens,
                total=tokens.total_tokens,
                ts=datetime.now(UTC),
            )
        )
        self.save(run_id, run)

    def finish_run(self, run_id: str, ended_at: datetime | None = None) -> None:
        """실행 기록 종료 표시."""
        run = self.get_by_id(run_id)
        if run is None:
            return
        run.finished = True
        run.ended_at = ended_at or datetime.now(UTC)
        self.save(run_id, run)
