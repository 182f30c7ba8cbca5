"""Tests for OpenAICompatClient."""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from src.adapters.llm_client import ProviderCallError
from src.adapters.openai_compat_client import OpenAICompatClient

MESSAGES = [
    {"role": "system", "content": "Be brief."},
    {"role": "user", "content": "Summarize this article"},
]


def _completion(text: str, usage: dict[str, int] | None = None) -> dict[str, Any]:
    body: dict[str, Any] = {
        "model": "gpt-4o-mini-2024-07-18",
        "choices": [{"message": {"role": "assistant", "content": text}}],
    }
    if usage is not None:
        body["usage"] = usage
    return body


def _client(
    provider: str, handler: Callable[[httpx.Request], httpx.Response]
) -> OpenAICompatClient:
    http = httpx.Client(transport=httpx.MockTransport(handler))
    return OpenAICompatClient(provider, "test-key", http_client=http)


class TestOpenAICompatClient:
    """Tests for OpenAICompatClient."""

    def test_generate_posts_chat_completion(self) -> None:
        """POST /chat/completions 요청과 결과 변환."""
        captured: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json=_completion(
                    " Summary text ", {"prompt_tokens": 20, "completion_tokens": 8}
                ),
            )

        result = _client("openai", handler).generate(
            "gpt-4o-mini", MESSAGES, temperature=0.15, max_output_tokens=400
        )

        assert captured["url"] == "https://api.openai.com/v1/chat/completions"
        assert captured["auth"] == "Bearer test-key"
        assert captured["body"]["model"] == "gpt-4o-mini"
        assert captured["body"]["messages"] == MESSAGES
        assert captured["body"]["temperature"] == 0.15
        assert captured["body"]["max_completion_tokens"] == 400
        assert "max_tokens" not in captured["body"]

        assert result.text == "Summary text"
        assert result.provider_id == "openai"
        assert result.model == "gpt-4o-mini-2024-07-18"
        assert result.tokens_used.total_tokens == 28

    @pytest.mark.parametrize(
        ("provider", "url"),
        [
            ("deepseek", "https://api.deepseek.com/chat/completions"),
            ("openrouter", "https://openrouter.ai/api/v1/chat/completions"),
        ],
    )
    def test_other_providers_use_max_tokens(self, provider: str, url: str) -> None:
        captured: dict[str, Any] = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion("ok"))

        _client(provider, handler).generate("m", MESSAGES, max_output_tokens=200)

        assert captured["url"] == url
        assert captured["body"]["max_tokens"] == 200

    def test_missing_usage_is_estimated(self) -> None:
        """usage가 없으면 max(단어/0.75, 문자/4)로 추정."""
        result = _client(
            "deepseek", lambda r: httpx.Response(200, json=_completion("one two three"))
        ).generate("deepseek-chat", MESSAGES)

        assert result.tokens_used.output_tokens == 4
        assert result.tokens_used.input_tokens > 0

    def test_http_error_carries_status(self) -> None:
        """2xx가 아닌 응답은 상태 코드를 가진 ProviderCallError."""
        client = _client(
            "openrouter",
            lambda r: httpx.Response(429, json={"error": {"message": "rate limited"}}),
        )

        with pytest.raises(ProviderCallError) as exc_info:
            client.generate("m", MESSAGES)

        assert exc_info.value.status_code == 429
        assert exc_info.value.provider == "openrouter"

    def test_error_object_in_success_body(self) -> None:
        """200 응답 안의 error 객체도 실패."""
        client = _client(
            "openrouter",
            lambda r: httpx.Response(
                200, json={"error": {"message": "No endpoints found", "code": 404}}
            ),
        )

        with pytest.raises(ProviderCallError, match="No endpoints found") as exc_info:
            client.generate("m", MESSAGES)

        assert exc_info.value.status_code == 404

    def test_invalid_json(self) -> None:
        client = _client("openai", lambda r: httpx.Response(200, text="<html>"))

        with pytest.raises(ProviderCallError, match="Invalid JSON"):
            client.generate("gpt-4o-mini", MESSAGES)

    def test_missing_choices(self) -> None:
        client = _client("openai", lambda r: httpx.Response(200, json={"choices": []}))

        with pytest.raises(ProviderCallError, match="Malformed response"):
            client.generate("gpt-4o-mini", MESSAGES)

    def test_non_string_content(self) -> None:
        """content가 문자열이 아니면 (content parts 목록 등) 실패."""
        body = {"choices": [{"message": {"content": [{"type": "text", "text": "hi"}]}}]}
        client = _client("openai", lambda r: httpx.Response(200, json=body))

        with pytest.raises(ProviderCallError, match="content is list"):
            client.generate("gpt-4o-mini", MESSAGES)

    def test_non_dict_usage_is_estimated(self) -> None:
        body = {**_completion("one two three"), "usage": ["bad"]}
        client = _client("deepseek", lambda r: httpx.Response(200, json=body))

        result = client.generate("deepseek-chat", MESSAGES)

        assert result.text == "one two three"
        assert result.tokens_used.output_tokens == 4

    def test_empty_completion(self) -> None:
        client = _client("openai", lambda r: httpx.Response(200, json=_completion("  ")))

        with pytest.raises(ProviderCallError, match="Empty completion"):
            client.generate("gpt-4o-mini", MESSAGES)

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ProviderCallError, match="Timeout"):
            _client("openai", handler).generate("gpt-4o-mini", MESSAGES)

    def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderCallError, match="Network error"):
            _client("deepseek", handler).generate("deepseek-chat", MESSAGES)
