"""Trigger endpoints for scheduled runs.

스케줄러(cron, GitHub Actions 등)가 호출하는 내부 엔드포인트입니다.
엔드포인트는 async로 선언되어 이벤트 루프에서 순차 실행되므로
파일 저장소에 동시에 쓰는 실행이 생기지 않습니다.
"""

from typing import Any

import structlog
from fastapi import APIRouter, HTTPException, Request

from src.adapters.json_store import JsonDocumentStore
from src.config.settings import Settings, get_settings
from src.errors import PipelineFatalError
from src.repositories.item_repo import ItemRepository
from src.repositories.state_repo import StateRepository
from src.services.content_pipeline import ContentPipeline, build_pipeline

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/internal", tags=["scheduler"])


def _settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


def get_content_pipeline(request: Request) -> ContentPipeline:
    """요청마다 새 파이프라인 구성 (예산/회전 오프셋은 실행 단위).

    Raises:
        ConfigurationError: 자격 증명 누락 등 설정 오류.
    """
    return build_pipeline(_settings(request))


def _fatal(event: str, error: PipelineFatalError) -> HTTPException:
    logger.error(event, error=str(error), error_type=type(error).__name__)
    return HTTPException(
        status_code=500,
        detail={"status": "error", "error": str(error)},
    )


@router.post("/sync")
async def sync_sources(request: Request) -> dict[str, Any]:
    """소스 동기화만 실행.

    Returns:
        소스별 동기화 결과.
    """
    try:
        pipeline = get_content_pipeline(request)
        report = pipeline.sync()
    except PipelineFatalError as e:
        raise _fatal("sync_failed", e) from e

    return {"status": "success", "result": report.to_dict()}


@router.post("/run")
async def run_pipeline(request: Request) -> dict[str, Any]:
    """sync → enrich → classify 전체 실행.

    소스나 아이템이 모두 실패해도 상태가 저장되었으면 성공으로 응답합니다.

    Returns:
        실행 결과 (동기화, 스테이지별 처리 수, 예산 사용량).
    """
    try:
        pipeline = get_content_pipeline(request)
        result = pipeline.run()
    except PipelineFatalError as e:
        raise _fatal("pipeline_failed", e) from e

    return {"status": "success", "result": result.to_dict()}


@router.get("/status")
async def pipeline_status(request: Request) -> dict[str, Any]:
    """저장된 소스 상태와 아이템 수 조회."""
    settings = _settings(request)
    try:
        states = StateRepository(JsonDocumentStore(settings.INGEST_STATE_PATH))
        items = ItemRepository(JsonDocumentStore(settings.KNOWLEDGE_JSON_PATH))
        sources = {
            key: state.model_dump(mode="json", by_alias=True)
            for key, state in states.all_states().items()
        }
        item_count = items.count()
    except PipelineFatalError as e:
        raise _fatal("status_failed", e) from e

    return {"status": "success", "items": item_count, "sources": sources}
