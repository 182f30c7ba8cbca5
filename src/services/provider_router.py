"""Provider router with rotation and fallback.

후보 프로바이더/모델 목록을 회전 오프셋부터 한 번씩 시도하고
처음 성공한 결과를 반환합니다.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

import structlog

from src.adapters.llm_client import LLMClient, Message, ProviderCallError, as_messages
from src.errors import ConfigurationError
from src.models.provider import ProviderCallResult, ProviderCandidate
from src.services.budget_guard import BudgetGuard

logger = structlog.get_logger(__name__)


class AttemptOutcome(str, Enum):
    """후보 시도 결과."""

    VETOED = "vetoed"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


@dataclass(frozen=True)
class ProviderAttempt:
    """후보 1개 시도 기록."""

    candidate: ProviderCandidate
    outcome: AttemptOutcome
    error: str | None = None


class AllProvidersFailedError(Exception):
    """모든 후보가 실패하거나 거부됨."""

    def __init__(self, purpose: str, attempts: list[ProviderAttempt]) -> None:
        self.purpose = purpose
        self.attempts = attempts
        details = ", ".join(
            f"{a.candidate.label}={a.outcome.value}" for a in attempts
        )
        super().__init__(f"All providers failed for {purpose}: {details}")

    @property
    def all_vetoed(self) -> bool:
        """모든 후보가 예산 한도로 거부됐는지 (서비스 장애와 구분용)."""
        return bool(self.attempts) and all(
            a.outcome == AttemptOutcome.VETOED for a in self.attempts
        )


class ProviderRouter:
    """회전 오프셋 기반 프로바이더 라우터.

    오프셋은 성공 여부와 무관하게 호출마다 1씩 증가합니다 (부하 분산용).
    라우터 인스턴스의 수명이 곧 오프셋의 수명입니다.
    """

    def __init__(
        self,
        candidates: Sequence[ProviderCandidate],
        clients: Mapping[str, LLMClient],
        guard: BudgetGuard,
        purpose: str = "default",
        start_offset: int = 0,
    ) -> None:
        """ProviderRouter 초기화.

        Args:
            candidates: 시도 순서대로 정렬된 후보 목록.
            clients: 프로바이더 이름 → 클라이언트.
            guard: 실행당 BudgetGuard.
            purpose: 로그용 용도 이름 (enrich, classify).
            start_offset: 시작 회전 오프셋.

        Raises:
            ConfigurationError: 후보가 없거나, 허용되지 않은 모델이거나,
                클라이언트(자격 증명)가 없는 프로바이더가 포함된 경우.
        """
        if not candidates:
            raise ConfigurationError(f"No provider candidates defined for '{purpose}'")

        for candidate in candidates:
            guard.ensure_allowed(candidate)
            if candidate.provider.value not in clients:
                raise ConfigurationError(
                    f"No client configured for provider '{candidate.provider.value}' "
                    f"(missing credential?) used by '{purpose}'"
                )

        self.candidates = list(candidates)
        self.clients = clients
        self.guard = guard
        self.purpose = purpose
        self._offset = start_offset % len(self.candidates)

    @property
    def offset(self) -> int:
        """다음 호출의 시작 오프셋."""
        return self._offset

    def invoke(
        self,
        prompt: str | list[Message],
        temperature: float = 0.2,
        max_output_tokens: int | None = None,
    ) -> ProviderCallResult:
        """후보를 순서대로 시도해 첫 성공 결과 반환.

        Args:
            prompt: 프롬프트 문자열 또는 메시지 목록.
            temperature: 생성 온도.
            max_output_tokens: 최대 출력 토큰.

        Returns:
            첫 번째로 성공한 ProviderCallResult.

        Raises:
            AllProvidersFailedError: 모든 후보가 실패하거나 거부된 경우.
        """
        messages = as_messages(prompt)
        start = self._offset
        self._offset = (start + 1) % len(self.candidates)

        attempts: list[ProviderAttempt] = []
        for candidate in self._rotation(start):
            provider = candidate.provider.value

            if not self.guard.is_allowed(provider, candidate.model):
                logger.warning(
                    "provider_call_vetoed",
                    purpose=self.purpose,
                    provider=provider,
                    model=candidate.model,
                    reason="model_not_allowed",
                )
                attempts.append(ProviderAttempt(candidate, AttemptOutcome.VETOED))
                continue

            if not self.guard.admit(provider, candidate.est_cost):
                logger.info(
                    "provider_call_vetoed",
                    purpose=self.purpose,
                    provider=provider,
                    model=candidate.model,
                    reason="budget_cap",
                    usage=self.guard.snapshot().get(provider),
                )
                attempts.append(ProviderAttempt(candidate, AttemptOutcome.VETOED))
                continue

            try:
                result = self.clients[provider].generate(
                    model=candidate.model,
                    messages=messages,
                    temperature=temperature,
                    max_output_tokens=max_output_tokens,
                )
            except ProviderCallError as e:
                logger.warning(
                    "provider_call_failed",
                    purpose=self.purpose,
                    provider=provider,
                    model=candidate.model,
                    status_code=e.status_code,
                    error=str(e),
                )
                attempts.append(
                    ProviderAttempt(candidate, AttemptOutcome.FAILED, error=str(e))
                )
                continue

            self.guard.record(provider, candidate.est_cost)
            logger.info(
                "provider_call_succeeded",
                purpose=self.purpose,
                provider=provider,
                model=result.model,
                total_tokens=result.tokens_used.total_tokens,
                attempts=len(attempts) + 1,
            )
            return result

        logger.error(
            "all_providers_failed",
            purpose=self.purpose,
            attempts=[(a.candidate.label, a.outcome.value) for a in attempts],
        )
        raise AllProvidersFailedError(self.purpose, attempts)

    def _rotation(self, start: int) -> list[ProviderCandidate]:
        """start부터 감아 돌며 각 후보를 한 번씩."""
        n = len(self.candidates)
        return [self.candidates[(start + i) % n] for i in range(n)]
