"""Provider models for LLM invocation routing.

프로바이더 후보, 호출 결과, 예산 한도/사용량을 정의합니다.
"""

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ProviderName(str, Enum):
    """지원하는 텍스트 생성 프로바이더."""

    OPENAI = "openai"
    GEMINI = "gemini"
    DEEPSEEK = "deepseek"
    OPENROUTER = "openrouter"


class ProviderCandidate(BaseModel):
    """라우터 후보 (프로바이더 + 모델).

    Config file: models.json
    """

    model_config = ConfigDict(frozen=True)

    provider: ProviderName = Field(..., description="프로바이더")
    model: str = Field(..., min_length=1, description="모델 ID")
    est_cost: float = Field(0.0, ge=0.0, description="호출당 예상 비용")

    @property
    def label(self) -> str:
        return f"{self.provider.value}/{self.model}"


@dataclass(frozen=True)
class TokenUsage:
    """토큰 사용량."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class ProviderCallResult:
    """프로바이더 호출 결과 (호출마다 새로 생성, 별도 저장하지 않음)."""

    text: str
    provider_id: str
    model: str
    tokens_used: TokenUsage = field(default_factory=TokenUsage)


@dataclass(frozen=True)
class BudgetCapConfig:
    """프로바이더별 실행당 한도. 둘 다 None이면 무제한."""

    max_calls: int | None = None
    max_spend: float | None = None


@dataclass
class ProviderUsage:
    """실행 중 프로바이더 누적 사용량."""

    calls: int = 0
    estimated_cost: float = 0.0
