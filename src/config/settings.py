"""Application settings using Pydantic Settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.models.provider import BudgetCapConfig

DEFAULT_ALLOWED_MODELS: dict[str, list[str]] = {
    "openai": ["gpt-4o-mini", "gpt-4.0-mini", "gpt-5-nano", "gpt-5-mini"],
    "gemini": ["gemini-2.5-flash-lite", "gemini-2.5-flash"],
    "deepseek": ["deepseek-chat"],
}


class Settings(BaseSettings):
    """Application configuration from environment variables.

    자격 증명은 모두 선택 사항입니다. 설정된 소스/프로바이더가 필요로 하는
    자격 증명이 없으면 파이프라인 구성 시점에 ConfigurationError가 발생합니다.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Source credentials
    # -------------------------------------------------------------------------
    RAINDROP_TOKEN: str | None = None
    YOUTUBE_API_KEY: str | None = None

    # -------------------------------------------------------------------------
    # LLM provider credentials
    # -------------------------------------------------------------------------
    OPENAI_API_KEY: str | None = None
    GEMINI_API_KEY: str | None = None
    DEEPSEEK_API_KEY: str | None = None
    OPENROUTER_API_KEY: str | None = None

    # -------------------------------------------------------------------------
    # Storage (JSON files)
    # -------------------------------------------------------------------------
    KNOWLEDGE_JSON_PATH: str = "data/knowledge.json"
    INGEST_STATE_PATH: str = "data/cache/ingest-state.json"
    USAGE_LOG_PATH: str = "data/cache/pipeline-usage.json"
    HANDLE_CACHE_PATH: str = "data/cache/youtube-handles.json"

    # -------------------------------------------------------------------------
    # Config files
    # -------------------------------------------------------------------------
    SOURCES_CONFIG_PATH: str = "config/sources.json"
    MODELS_CONFIG_PATH: str = "config/models.json"
    PROJECTS_CONFIG_PATH: str = "config/projects.json"

    # -------------------------------------------------------------------------
    # Budget guard (per-run caps)
    # -------------------------------------------------------------------------
    MAX_OPENAI_CALLS_PER_RUN: int = 100
    MAX_GEMINI_CALLS_PER_RUN: int = 500
    MAX_DEEPSEEK_SPEND: float = 2.0
    MAX_OPENROUTER_SPEND: float = 5.0

    ALLOWED_MODELS: dict[str, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_ALLOWED_MODELS.items()}
    )
    """프로바이더별 허용 모델. 목록에 없는 프로바이더는 제한 없음"""

    # -------------------------------------------------------------------------
    # Timeouts
    # -------------------------------------------------------------------------
    SOURCE_FETCH_TIMEOUT_SECONDS: float = 30.0
    """소스 수집 HTTP 호출 타임아웃 (초)"""

    PROVIDER_CALL_TIMEOUT_SECONDS: float = 60.0
    """LLM 프로바이더 호출 타임아웃 (초)"""

    # -------------------------------------------------------------------------
    # Pipeline
    # -------------------------------------------------------------------------
    MAX_CONSECUTIVE_FAILS: int = 5
    """스테이지별 연속 실패 허용 횟수 (초과 시 스테이지 조기 종료)"""

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"

    def budget_caps(self) -> dict[str, BudgetCapConfig]:
        """프로바이더별 예산 한도."""
        return {
            "openai": BudgetCapConfig(max_calls=self.MAX_OPENAI_CALLS_PER_RUN),
            "gemini": BudgetCapConfig(max_calls=self.MAX_GEMINI_CALLS_PER_RUN),
            "deepseek": BudgetCapConfig(max_spend=self.MAX_DEEPSEEK_SPEND),
            "openrouter": BudgetCapConfig(max_spend=self.MAX_OPENROUTER_SPEND),
        }


# Singleton instance (lazy initialization)
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings (singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings

