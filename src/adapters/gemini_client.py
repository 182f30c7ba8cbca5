"""Gemini AI client adapter.

Google Gen AI SDK를 사용한 Gemini API 래퍼.
"""

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from src.adapters.llm_client import (
    Message,
    ProviderCallError,
    estimate_tokens_from_text,
    messages_text,
)
from src.models.provider import ProviderCallResult, ProviderName, TokenUsage


class GeminiClient:
    """Gemini API 클라이언트.

    google-genai SDK를 사용하여 Gemini 모델과 통신합니다.
    """

    provider = ProviderName.GEMINI.value

    def __init__(self, api_key: str, timeout: float = 60.0) -> None:
        """Initialize Gemini client.

        Args:
            api_key: Gemini API 키.
            timeout: 호출 타임아웃 (초).
        """
        self.timeout = timeout
        self._client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )

    def generate(
        self,
        model: str,
        messages: list[Message],
        temperature: float = 0.2,
        max_output_tokens: int | None = None,
    ) -> ProviderCallResult:
        """텍스트 생성.

        system 메시지는 system_instruction으로, 나머지는 대화 contents로 전달합니다.

        Args:
            model: Gemini 모델 ID.
            messages: 채팅 메시지 목록.
            temperature: 생성 온도.
            max_output_tokens: 최대 출력 토큰.

        Returns:
            ProviderCallResult.

        Raises:
            ProviderCallError: API 오류, 타임아웃, 빈 응답.
        """
        system_parts = [m["content"] for m in messages if m.get("role") == "system"]
        contents = [
            types.Content(
                role="model" if m.get("role") == "assistant" else "user",
                parts=[types.Part(text=m["content"])],
            )
            for m in messages
            if m.get("role") != "system"
        ]

        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_output_tokens,
            system_instruction="\n\n".join(system_parts) or None,
        )

        try:
            response = self._client.models.generate_content(
                model=model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            raise ProviderCallError(
                self.provider, str(e.message or e), status_code=e.code, model=model
            ) from e
        except httpx.TimeoutException as e:
            raise ProviderCallError(
                self.provider, f"Timeout after {self.timeout}s", model=model
            ) from e
        except httpx.HTTPError as e:
            raise ProviderCallError(
                self.provider, f"Network error: {e}", model=model
            ) from e

        try:
            text = (response.text or "").strip()
        except ValueError as e:
            raise ProviderCallError(
                self.provider, f"Malformed response: {e}", model=model
            ) from e
        if not text:
            raise ProviderCallError(self.provider, "Empty completion", model=model)

        usage = response.usage_metadata
        input_tokens = usage.prompt_token_count if usage else None
        output_tokens = usage.candidates_token_count if usage else None

        return ProviderCallResult(
            text=text,
            provider_id=self.provider,
            model=model,
            tokens_used=TokenUsage(
                input_tokens=input_tokens
                or estimate_tokens_from_text(messages_text(messages)),
                output_tokens=output_tokens or estimate_tokens_from_text(text),
            ),
        )
