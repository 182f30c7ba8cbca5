"""FastAPI application with lifespan management."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.api.scheduler import router as scheduler_router
from src.config.logging import configure_logging, get_logger
from src.config.settings import get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager.

    설정과 로깅을 초기화합니다. 저장소/클라이언트는 실행마다 새로 구성합니다.
    """
    # Startup
    settings = get_settings()
    configure_logging(json_logs=settings.LOG_JSON, level=settings.LOG_LEVEL)
    logger = get_logger()

    app.state.settings = settings
    logger.info(
        "application_started",
        sources_config=settings.SOURCES_CONFIG_PATH,
        knowledge_path=settings.KNOWLEDGE_JSON_PATH,
    )

    yield

    # Shutdown
    logger.info("application_shutting_down")


app = FastAPI(
    title="Knowledge Pipeline",
    description="소스 수집, 요약, 프로젝트 분류 파이프라인",
    version="0.1.0",
    lifespan=lifespan,
)

# Register routers
app.include_router(scheduler_router)


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Health status.
    """
    return {"status": "healthy"}
