"""Per-run budget guard for provider calls.

프로바이더별 호출 수/예상 비용을 실행 단위로 집계하고 한도를 넘는 호출을 거부합니다.
누적 청구 장부가 아니라 실행당 차단기이므로 상태를 저장하지 않습니다.
"""

import structlog

from src.errors import ConfigurationError
from src.models.provider import BudgetCapConfig, ProviderCandidate, ProviderUsage

logger = structlog.get_logger(__name__)


class BudgetGuard:
    """프로바이더별 실행당 예산 한도 + 모델 허용 목록."""

    def __init__(
        self,
        caps: dict[str, BudgetCapConfig] | None = None,
        allowed_models: dict[str, list[str]] | None = None,
    ) -> None:
        """BudgetGuard 초기화.

        Args:
            caps: 프로바이더별 한도 (없는 프로바이더는 무제한).
            allowed_models: 프로바이더별 허용 모델 (없는 프로바이더는 제한 없음).
        """
        self._caps = dict(caps or {})
        self._allowed = {p: set(models) for p, models in (allowed_models or {}).items()}
        self._usage: dict[str, ProviderUsage] = {}

    def is_allowed(self, provider: str, model: str) -> bool:
        """허용 목록 확인."""
        allowed = self._allowed.get(provider)
        return allowed is None or model in allowed

    def ensure_allowed(self, candidate: ProviderCandidate) -> None:
        """허용되지 않은 모델이면 설정 오류.

        Raises:
            ConfigurationError: 허용 목록에 없는 모델.
        """
        if not self.is_allowed(candidate.provider.value, candidate.model):
            raise ConfigurationError(f"Unsafe model requested: {candidate.label}")

    def admit(self, provider: str, est_cost: float = 0.0) -> bool:
        """호출 허용 여부. 허용하면 한도를 넘게 되는 경우 False (veto).

        Args:
            provider: 프로바이더 이름.
            est_cost: 이번 호출의 예상 비용.

        Returns:
            허용 여부.
        """
        cap = self._caps.get(provider)
        if cap is None:
            return True

        usage = self.usage(provider)
        if cap.max_calls is not None and usage.calls + 1 > cap.max_calls:
            return False
        if cap.max_spend is not None and usage.estimated_cost + est_cost > cap.max_spend:
            return False
        return True

    def record(self, provider: str, actual_cost: float = 0.0) -> None:
        """실제 호출 완료 후 사용량 기록 (무조건 증가)."""
        usage = self._usage.setdefault(provider, ProviderUsage())
        usage.calls += 1
        usage.estimated_cost += actual_cost

    def usage(self, provider: str) -> ProviderUsage:
        """프로바이더 누적 사용량 (사본)."""
        usage = self._usage.get(provider, ProviderUsage())
        return ProviderUsage(calls=usage.calls, estimated_cost=usage.estimated_cost)

    def snapshot(self) -> dict[str, dict[str, float]]:
        """전체 사용량 (로그/응답용)."""
        return {
            provider: {"calls": usage.calls, "estimated_cost": usage.estimated_cost}
            for provider, usage in self._usage.items()
        }
