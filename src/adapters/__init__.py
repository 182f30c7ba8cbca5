"""External service adapters."""

from src.adapters.gemini_client import GeminiClient
from src.adapters.json_store import JsonDocumentStore
from src.adapters.llm_client import LLMClient, ProviderCallError
from src.adapters.openai_compat_client import OpenAICompatClient

__all__ = [
    "GeminiClient",
    "JsonDocumentStore",
    "LLMClient",
    "OpenAICompatClient",
    "ProviderCallError",
]
