"""OpenAI-compatible chat completions client.

OpenAI, DeepSeek, OpenRouter는 같은 /chat/completions 형식을 쓰므로
httpx 기반 클라이언트 하나로 처리합니다.
"""

import json
from typing import Any

import httpx
import structlog

from src.adapters.llm_client import (
    Message,
    ProviderCallError,
    estimate_tokens_from_text,
    messages_text,
)
from src.models.provider import ProviderCallResult, ProviderName, TokenUsage

logger = structlog.get_logger(__name__)

PROVIDER_BASE_URLS: dict[str, str] = {
    ProviderName.OPENAI.value: "https://api.openai.com/v1",
    ProviderName.DEEPSEEK.value: "https://api.deepseek.com",
    ProviderName.OPENROUTER.value: "https://openrouter.ai/api/v1",
}

# OpenAI는 최신 모델에서 max_tokens 대신 max_completion_tokens를 사용
_MAX_TOKENS_PARAM: dict[str, str] = {
    ProviderName.OPENAI.value: "max_completion_tokens",
}


class OpenAICompatClient:
    """Chat completions API 클라이언트.

    httpx로 호출하며, 모든 실패는 ProviderCallError로 변환합니다.
    """

    def __init__(
        self,
        provider: str,
        api_key: str,
        base_url: str | None = None,
        timeout: float = 60.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize chat completions client.

        Args:
            provider: 프로바이더 이름 (openai, deepseek, openrouter).
            api_key: API 키.
            base_url: API base URL (기본: 프로바이더별 URL).
            timeout: 호출 타임아웃 (초).
            http_client: 주입할 httpx.Client (테스트용).
        """
        self.provider = provider
        self._api_key = api_key
        self.base_url = (base_url or PROVIDER_BASE_URLS[provider]).rstrip("/")
        self.timeout = timeout
        self._http = http_client

    def generate(
        self,
        model: str,
        messages: list[Message],
        temperature: float = 0.2,
        max_output_tokens: int | None = None,
    ) -> ProviderCallResult:
        """텍스트 생성.

        Args:
            model: 모델 ID.
            messages: 채팅 메시지 목록.
            temperature: 생성 온도.
            max_output_tokens: 최대 출력 토큰.

        Returns:
            ProviderCallResult.

        Raises:
            ProviderCallError: HTTP 오류, 타임아웃, 잘못된 응답.
        """
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if max_output_tokens is not None:
            payload[_MAX_TOKENS_PARAM.get(self.provider, "max_tokens")] = (
                max_output_tokens
            )

        data = self._post(model, payload)

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderCallError(
                self.provider, f"Malformed response: missing {e}", model=model
            ) from e

        if content is not None and not isinstance(content, str):
            raise ProviderCallError(
                self.provider,
                f"Malformed response: content is {type(content).__name__}",
                model=model,
            )
        text = (content or "").strip()

        if not text:
            raise ProviderCallError(self.provider, "Empty completion", model=model)

        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        tokens = TokenUsage(
            input_tokens=usage.get("prompt_tokens")
            or estimate_tokens_from_text(messages_text(messages)),
            output_tokens=usage.get("completion_tokens")
            or estimate_tokens_from_text(text),
        )

        return ProviderCallResult(
            text=text,
            provider_id=self.provider,
            model=data.get("model") or model,
            tokens_used=tokens,
        )

    def _post(self, model: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST /chat/completions 후 JSON 반환."""
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        try:
            if self._http is not None:
                response = self._http.post(
                    url, json=payload, headers=headers, timeout=self.timeout
                )
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(url, json=payload, headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderCallError(
                self.provider, f"Timeout after {self.timeout}s", model=model
            ) from e
        except httpx.HTTPError as e:
            raise ProviderCallError(
                self.provider, f"Network error: {e}", model=model
            ) from e

        if not response.is_success:
            raise ProviderCallError(
                self.provider,
                f"{response.reason_phrase} {response.text[:400]}".strip(),
                status_code=response.status_code,
                model=model,
            )

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise ProviderCallError(
                self.provider,
                "Invalid JSON response",
                status_code=response.status_code,
                model=model,
            ) from e

        if not isinstance(data, dict):
            raise ProviderCallError(self.provider, "Unexpected response body", model=model)

        # OpenRouter는 200 응답 안에 error 객체를 넣기도 함
        if "error" in data and "choices" not in data:
            error = data["error"] if isinstance(data["error"], dict) else {}
            code = error.get("code")
            raise ProviderCallError(
                self.provider,
                str(error.get("message") or data["error"]),
                status_code=code if isinstance(code, int) else None,
                model=model,
            )

        return data
