"""Knowledge pipeline orchestration.

수집(sync) → 요약(enrich) → 분류(classify) 전체 파이프라인을 관리합니다.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

import structlog

from src.adapters.gemini_client import GeminiClient
from src.adapters.json_store import JsonDocumentStore
from src.adapters.llm_client import LLMClient
from src.adapters.openai_compat_client import OpenAICompatClient
from src.agent.domains.collector.tools.base import Fetcher
from src.agent.domains.collector.tools.raindrop_tool import RaindropFetcher
from src.agent.domains.collector.tools.youtube_tool import (
    YouTubeChannelFetcher,
    YouTubePlaylistFetcher,
)
from src.agent.domains.processor.tools.classifier_tool import classify_item
from src.agent.domains.processor.tools.summarizer_tool import summarize_item
from src.config.logging import bind_run_context
from src.config.settings import Settings
from src.config.sources import (
    load_model_candidates,
    load_projects,
    load_source_descriptors,
)
from src.errors import ConfigurationError
from src.models.project import Project
from src.models.provider import ProviderCandidate, ProviderName
from src.models.source import SourceDescriptor, SourceKind
from src.repositories.item_repo import ItemRepository
from src.repositories.state_repo import StateRepository
from src.repositories.usage_repo import UsageRepository
from src.services.budget_guard import BudgetGuard
from src.services.provider_router import AllProvidersFailedError, ProviderRouter
from src.services.sync_scheduler import SyncReport, SyncScheduler

logger = structlog.get_logger(__name__)


@dataclass
class StageResult:
    """스테이지 1개의 처리 결과."""

    name: str
    attempted: int = 0
    succeeded: int = 0
    failed: int = 0
    aborted: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "aborted": self.aborted,
        }


@dataclass
class PipelineResult:
    """실행 1회의 결과."""

    run_id: str
    sync: SyncReport
    enrich: StageResult
    classify: StageResult
    budget: dict[str, dict[str, float]] = field(default_factory=dict)

    @property
    def enriched(self) -> int:
        return self.enrich.succeeded

    @property
    def classified(self) -> int:
        return self.classify.succeeded

    @property
    def failed(self) -> int:
        return self.enrich.failed + self.classify.failed

    def to_dict(self) -> dict[str, object]:
        return {
            "run_id": self.run_id,
            "sync": self.sync.to_dict(),
            "enrich": self.enrich.to_dict(),
            "classify": self.classify.to_dict(),
            "budget": self.budget,
        }


class ContentPipeline:
    """지식 수집 및 처리 파이프라인.

    BudgetGuard는 실행 단위로 enrich/classify 라우터가 공유하고,
    회전 오프셋은 각 라우터가 가집니다.
    """

    def __init__(
        self,
        scheduler: SyncScheduler,
        item_repo: ItemRepository,
        guard: BudgetGuard,
        enrich_router: ProviderRouter | None = None,
        classify_router: ProviderRouter | None = None,
        projects: list[Project] | None = None,
        usage_repo: UsageRepository | None = None,
        max_consecutive_fails: int = 5,
    ) -> None:
        """ContentPipeline 초기화.

        Args:
            scheduler: 소스 동기화 스케줄러
            item_repo: 아이템 리포지토리
            guard: 실행당 예산 가드
            enrich_router: 요약 라우터 (없으면 요약 생략)
            classify_router: 분류 라우터 (없으면 분류 생략)
            projects: 분류 대상 프로젝트
            usage_repo: 토큰 사용량 리포지토리
            max_consecutive_fails: 스테이지 조기 종료 기준 연속 실패 수
        """
        self.scheduler = scheduler
        self.item_repo = item_repo
        self.guard = guard
        self.enrich_router = enrich_router
        self.classify_router = classify_router
        self.projects = projects or []
        self.usage_repo = usage_repo
        self.max_consecutive_fails = max_consecutive_fails

    def run(self) -> PipelineResult:
        """sync → enrich → classify 실행.

        Returns:
            PipelineResult.

        Raises:
            PipelineFatalError: 설정/저장소 오류.
        """
        run_id = uuid.uuid4().hex[:12]
        bind_run_context(run_id=run_id)
        if self.usage_repo:
            self.usage_repo.start_run(run_id)

        logger.info("pipeline_started", sources=len(self.scheduler.descriptors))

        sync_report = self.sync()
        enrich = self.enrich(run_id)
        classify = self.classify(run_id)

        if self.usage_repo:
            self.usage_repo.finish_run(run_id)

        result = PipelineResult(
            run_id=run_id,
            sync=sync_report,
            enrich=enrich,
            classify=classify,
            budget=self.guard.snapshot(),
        )
        logger.info(
            "pipeline_completed",
            ingested=sync_report.ingested,
            sources_failed=sync_report.failed,
            enriched=result.enriched,
            classified=result.classified,
            failed=result.failed,
        )
        return result

    def sync(self) -> SyncReport:
        """모든 소스 동기화."""
        return self.scheduler.run()

    def enrich(self, run_id: str) -> StageResult:
        """요약이 없는 아이템 요약.

        모든 후보가 실패한 아이템은 그대로 두고 다음 실행에서 재시도합니다.
        """
        stage = StageResult(name="enrich")
        if self.enrich_router is None:
            logger.info("stage_skipped", stage=stage.name, reason="no_candidates")
            return stage

        consecutive = 0
        for item in self.item_repo.find_needing_enrichment():
            stage.attempted += 1
            try:
                result = summarize_item(item, self.enrich_router)
            except AllProvidersFailedError as e:
                stage.failed += 1
                consecutive += 1
                logger.warning(
                    "item_enrich_failed",
                    item_id=item.id,
                    all_vetoed=e.all_vetoed,
                )
                if self._should_stop(stage, consecutive):
                    break
                continue

            consecutive = 0
            self.item_repo.update_enrichment(
                item.id,
                summary=result.summary,
                description=result.description,
                enriched_by=result.enriched_by,
            )
            if self.usage_repo:
                self.usage_repo.record(run_id, stage.name, item.id, result.call)
            stage.succeeded += 1

        return stage

    def classify(self, run_id: str) -> StageResult:
        """활성 프로젝트별 미분류 아이템 분류."""
        stage = StageResult(name="classify")
        if self.classify_router is None or not self.projects:
            logger.info("stage_skipped", stage=stage.name, reason="no_candidates_or_projects")
            return stage

        consecutive = 0
        project_keys = [p.key for p in self.projects]
        for item in self.item_repo.find_needing_classification(project_keys):
            for project in self.projects:
                if item.is_classified_for(project.key):
                    continue

                stage.attempted += 1
                try:
                    result = classify_item(item, project, self.classify_router)
                except AllProvidersFailedError as e:
                    stage.failed += 1
                    consecutive += 1
                    logger.warning(
                        "item_classify_failed",
                        item_id=item.id,
                        project_key=project.key,
                        all_vetoed=e.all_vetoed,
                    )
                    if self._should_stop(stage, consecutive):
                        return stage
                    continue

                consecutive = 0
                self.item_repo.add_classification(item.id, result.classification)
                if self.usage_repo:
                    self.usage_repo.record(run_id, stage.name, item.id, result.call)
                stage.succeeded += 1

        return stage

    def _should_stop(self, stage: StageResult, consecutive: int) -> bool:
        if consecutive < self.max_consecutive_fails:
            return False
        stage.aborted = True
        logger.error(
            "stage_fail_fast",
            stage=stage.name,
            consecutive_failures=consecutive,
        )
        return True


def build_fetchers(
    settings: Settings,
    descriptors: list[SourceDescriptor],
    handle_cache: JsonDocumentStore | None = None,
) -> dict[SourceKind, Fetcher]:
    """활성 소스가 사용하는 종류의 Fetcher 생성.

    Raises:
        ConfigurationError: 필요한 자격 증명이 없는 경우.
    """
    kinds = {d.kind for d in descriptors if d.is_active}
    timeout = settings.SOURCE_FETCH_TIMEOUT_SECONDS
    fetchers: dict[SourceKind, Fetcher] = {}

    if SourceKind.BOOKMARK_COLLECTION in kinds:
        if not settings.RAINDROP_TOKEN:
            raise ConfigurationError("RAINDROP_TOKEN is required for bookmark sources")
        fetchers[SourceKind.BOOKMARK_COLLECTION] = RaindropFetcher(
            settings.RAINDROP_TOKEN, timeout=timeout
        )

    if SourceKind.VIDEO_PLAYLIST in kinds:
        if not settings.YOUTUBE_API_KEY:
            raise ConfigurationError("YOUTUBE_API_KEY is required for playlist sources")
        fetchers[SourceKind.VIDEO_PLAYLIST] = YouTubePlaylistFetcher(
            settings.YOUTUBE_API_KEY, timeout=timeout
        )

    if SourceKind.VIDEO_CHANNEL in kinds:
        fetchers[SourceKind.VIDEO_CHANNEL] = YouTubeChannelFetcher(
            api_key=settings.YOUTUBE_API_KEY,
            handle_cache=handle_cache,
            timeout=timeout,
        )

    return fetchers


_API_KEY_FIELDS: dict[ProviderName, str] = {
    ProviderName.OPENAI: "OPENAI_API_KEY",
    ProviderName.GEMINI: "GEMINI_API_KEY",
    ProviderName.DEEPSEEK: "DEEPSEEK_API_KEY",
    ProviderName.OPENROUTER: "OPENROUTER_API_KEY",
}


def build_clients(
    settings: Settings, candidates: list[ProviderCandidate]
) -> dict[str, LLMClient]:
    """후보가 사용하는 프로바이더의 클라이언트 생성.

    Raises:
        ConfigurationError: 필요한 API 키가 없는 경우.
    """
    timeout = settings.PROVIDER_CALL_TIMEOUT_SECONDS
    clients: dict[str, LLMClient] = {}

    for provider in dict.fromkeys(c.provider for c in candidates):
        key_field = _API_KEY_FIELDS[provider]
        api_key = getattr(settings, key_field)
        if not api_key:
            raise ConfigurationError(
                f"{key_field} is required for provider '{provider.value}'"
            )

        if provider == ProviderName.GEMINI:
            clients[provider.value] = GeminiClient(api_key, timeout=timeout)
        else:
            clients[provider.value] = OpenAICompatClient(
                provider.value, api_key, timeout=timeout
            )

    return clients


def build_pipeline(
    settings: Settings,
    clock: Callable[[], datetime] | None = None,
) -> ContentPipeline:
    """설정으로 파이프라인 구성.

    Args:
        settings: 애플리케이션 설정.
        clock: 현재 시각 함수 (테스트용).

    Returns:
        ContentPipeline.

    Raises:
        ConfigurationError: 자격 증명 누락, 허용되지 않은 모델, 설정 파일 오류.
    """
    descriptors = load_source_descriptors(settings.SOURCES_CONFIG_PATH)
    models = load_model_candidates(settings.MODELS_CONFIG_PATH)
    projects = load_projects(settings.PROJECTS_CONFIG_PATH)

    item_repo = ItemRepository(JsonDocumentStore(settings.KNOWLEDGE_JSON_PATH))
    state_repo = StateRepository(JsonDocumentStore(settings.INGEST_STATE_PATH))
    usage_repo = UsageRepository(JsonDocumentStore(settings.USAGE_LOG_PATH))
    handle_cache = JsonDocumentStore(settings.HANDLE_CACHE_PATH)

    scheduler = SyncScheduler(
        descriptors=descriptors,
        fetchers=build_fetchers(settings, descriptors, handle_cache),
        state_repo=state_repo,
        item_repo=item_repo,
        clock=clock or (lambda: datetime.now(UTC)),
    )

    guard = BudgetGuard(
        caps=settings.budget_caps(),
        allowed_models=settings.ALLOWED_MODELS,
    )
    clients = build_clients(settings, [*models.enrich, *models.classify])

    enrich_router = (
        ProviderRouter(models.enrich, clients, guard, purpose="enrich")
        if models.enrich
        else None
    )
    classify_router = (
        ProviderRouter(models.classify, clients, guard, purpose="classify")
        if models.classify and projects
        else None
    )

    return ContentPipeline(
        scheduler=scheduler,
        item_repo=item_repo,
        guard=guard,
        enrich_router=enrich_router,
        classify_router=classify_router,
        projects=projects,
        usage_repo=usage_repo,
        max_consecutive_fails=settings.MAX_CONSECUTIVE_FAILS,
    )
