"""Classifier tool for project usefulness.

classify 라우터로 아이템이 프로젝트에 얼마나 유용한지 HIGH/MODERATE/LOW로 분류합니다.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from src.models.item import Classification, Item, Usefulness
from src.models.project import Project
from src.models.provider import ProviderCallResult

if TYPE_CHECKING:
    from src.services.provider_router import ProviderRouter

MAX_OUTPUT_TOKENS = 200
TEMPERATURE = 0.2

_LEVEL = re.compile(r"\b(HIGH|MODERATE|LOW)\b", re.IGNORECASE)
_REASON = re.compile(r"why(?: it matters)?\s*:?\s*(.+)", re.IGNORECASE)
_NEXT_STEPS = re.compile(r"next steps?\s*:?\s*(.+)", re.IGNORECASE)


@dataclass
class ClassificationResult:
    """분류 결과."""

    classification: Classification
    call: ProviderCallResult


def build_prompt(project: Project, item: Item) -> str:
    """분류 프롬프트 생성."""
    goals = "\n".join(f"- {g}" for g in project.goals) or "(unspecified)"
    material = item.material() or "(no content, title/URL only)"

    return f"""You are classifying usefulness of an item for a specific project.

Project:
- Name: {project.name}
- Summary: {project.summary or "(none)"}
- Goals:
{goals}

Item:
- Title: {item.title or "(untitled)"}
- URL: {item.url or ""}
- Content:
{material}

Respond in plain text with:
1) Usefulness level: one of HIGH, MODERATE, or LOW
2) Why it matters: a single brief reason
3) Next steps: a single brief suggestion if useful

Format example:
HIGH
Why it matters: ...
Next steps: ..."""


def parse_usefulness(text: str) -> Usefulness:
    """첫 번째 등급 표기를 사용. 파싱 불가 시 LOW."""
    match = _LEVEL.search(text)
    if match is None:
        return Usefulness.LOW
    return Usefulness(match.group(1).upper())


def _extract(pattern: re.Pattern[str], text: str) -> str:
    match = pattern.search(text)
    return match.group(1).strip() if match else ""


def classify_item(
    item: Item,
    project: Project,
    router: "ProviderRouter",
) -> ClassificationResult:
    """프로젝트 기준 아이템 분류.

    Args:
        item: 분류할 아이템.
        project: 대상 프로젝트.
        router: classify 프로바이더 라우터.

    Returns:
        분류 결과.

    Raises:
        AllProvidersFailedError: 모든 후보가 실패하거나 거부된 경우.
    """
    call = router.invoke(
        build_prompt(project, item),
        temperature=TEMPERATURE,
        max_output_tokens=MAX_OUTPUT_TOKENS,
    )
    text = call.text

    classification = Classification(
        project_key=project.key,
        project=project.name,
        usefulness=parse_usefulness(text),
        reason=_extract(_REASON, text),
        next_steps=_extract(_NEXT_STEPS, text),
        model_used=call.model,
        provider_id=call.provider_id,
        classified_at=datetime.now(UTC),
    )
    return ClassificationResult(classification=classification, call=call)
