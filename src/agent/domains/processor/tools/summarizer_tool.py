"""Summarizer tool for item enrichment.

enrich 라우터로 짧은 요약(summary)과 지식베이스용 설명(description)을 생성합니다.
"""

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.adapters.llm_client import Message
from src.models.item import Item
from src.models.provider import ProviderCallResult

if TYPE_CHECKING:
    from src.services.provider_router import ProviderRouter

MAX_OUTPUT_TOKENS = 400
TEMPERATURE = 0.15


@dataclass
class SummaryResult:
    """요약 결과."""

    summary: str
    description: str
    call: ProviderCallResult

    @property
    def enriched_by(self) -> dict[str, str]:
        return {"model": self.call.model, "provider": self.call.provider_id}


# 시스템 프롬프트
SUMMARIZER_SYSTEM_PROMPT = (
    "You are a concise summarization assistant. Produce a short summary "
    "(one paragraph, max 2-3 sentences) and a slightly longer description "
    "(3-6 sentences) that explains usefulness and actionable next steps."
)

_MARKER_FLAGS = re.IGNORECASE | re.DOTALL | re.MULTILINE
# 표식은 줄 맨 앞 (번호, 굵게 표시 허용)
_SUMMARY_MARKER = re.compile(
    r"^\W*(?:\d+\W*)?summary\W*:\s*(.*?)(?=\n\W*(?:\d+\W*)?description\W*:|\Z)",
    _MARKER_FLAGS,
)
_DESCRIPTION_MARKER = re.compile(
    r"^\W*(?:\d+\W*)?description\W*:\s*(.*)", _MARKER_FLAGS
)
_SENTENCE_END = re.compile(r"(?<=[.!?])\s+")


def build_messages(item: Item) -> list[Message]:
    """요약 요청 메시지 (system + user)."""
    parts = [
        f"Title: {item.title or '(untitled)'}",
        f"Author: {item.author}" if item.author else "",
        f"URL: {item.url}" if item.url else "",
        f"Tags: {', '.join(item.tags)}" if item.tags else "",
    ]
    body = "\n\n".join(p for p in parts if p)

    return [
        {"role": "system", "content": SUMMARIZER_SYSTEM_PROMPT},
        {
            "role": "user",
            "content": (
                "Create:\n"
                "1) A short 'summary' (1 paragraph) suitable for quick digest.\n"
                "2) A 'description' (3-6 sentences) suitable for indexed "
                "knowledgebase.\n\n"
                f"Input:\n{body}"
            ),
        },
    ]


def split_summary(text: str) -> tuple[str, str]:
    """응답을 (summary, description)으로 분리.

    "Summary:" / "Description:" 표식이 있으면 그 기준으로, 없으면 첫 문장을
    summary로 나머지를 description으로 사용합니다.
    """
    text = text.strip()
    lower = text.lower()

    if "summary" in lower and "description" in lower:
        s_match = _SUMMARY_MARKER.search(text)
        d_match = _DESCRIPTION_MARKER.search(text)
        summary = _strip_markup(s_match.group(1)) if s_match else ""
        description = _strip_markup(d_match.group(1)) if d_match else ""
        if summary or description:
            return summary or description, description or summary

    sentences = [s for s in _SENTENCE_END.split(text) if s]
    summary = sentences[0].strip() if sentences else text
    description = " ".join(sentences[1:]).strip() or text
    return summary, description


def _strip_markup(value: str) -> str:
    # 번호/굵게 표시 등 리스트 장식 제거
    lines = [line.strip().strip("*").strip() for line in value.strip().splitlines()]
    cleaned = "\n".join(line for line in lines if line)
    return re.sub(r"^\d\)\s*", "", cleaned).strip()


def summarize_item(item: Item, router: "ProviderRouter") -> SummaryResult:
    """아이템 요약.

    Args:
        item: 요약할 아이템.
        router: enrich 프로바이더 라우터.

    Returns:
        요약 결과.

    Raises:
        AllProvidersFailedError: 모든 후보가 실패하거나 거부된 경우.
    """
    call = router.invoke(
        build_messages(item),
        temperature=TEMPERATURE,
        max_output_tokens=MAX_OUTPUT_TOKENS,
    )
    summary, description = split_summary(call.text)
    return SummaryResult(summary=summary, description=description, call=call)
