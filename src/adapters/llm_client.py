"""Common interface for text-generation provider clients.

모든 프로바이더 클라이언트는 같은 시그니처의 generate()를 제공하고,
실패 시 ProviderCallError를 발생시킵니다.
"""

from typing import Protocol

from src.models.provider import ProviderCallResult

# {"role": "system" | "user" | "assistant", "content": "..."}
Message = dict[str, str]


class ProviderCallError(Exception):
    """프로바이더 호출 실패 (HTTP 오류, 타임아웃, 잘못된 응답)."""

    def __init__(
        self,
        provider: str,
        message: str,
        status_code: int | None = None,
        model: str | None = None,
    ) -> None:
        self.provider = provider
        self.status_code = status_code
        self.model = model
        status = f" {status_code}" if status_code is not None else ""
        super().__init__(f"{provider}{status}: {message}")


class LLMClient(Protocol):
    """텍스트 생성 프로바이더 클라이언트."""

    provider: str

    def generate(
        self,
        model: str,
        messages: list[Message],
        temperature: float = 0.2,
        max_output_tokens: int | None = None,
    ) -> ProviderCallResult:
        """텍스트 생성.

        Raises:
            ProviderCallError: 호출 실패.
        """
        ...


def as_messages(prompt: str | list[Message]) -> list[Message]:
    """프롬프트 문자열을 단일 user 메시지로 변환."""
    if isinstance(prompt, str):
        return [{"role": "user", "content": prompt}]
    return prompt


def estimate_tokens_from_text(text: str | None) -> int:
    """단어/문자 수 기반 토큰 추정 (API가 usage를 주지 않을 때 사용)."""
    if not text:
        return 0
    words = len(text.split())
    chars = len(text)
    return max(round(words / 0.75), round(chars / 4))


def messages_text(messages: list[Message]) -> str:
    return "\n".join(m.get("content", "") for m in messages)
