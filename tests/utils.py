"""Test utilities shared across test modules."""

from datetime import UTC, datetime, timedelta
from typing import Any

from src.models.item import Item
from src.models.provider import ProviderCallResult, TokenUsage
from src.models.source import Cadence, SourceDescriptor, SourceKind


class FakeClock:
    """테스트용 시계 (날짜 단위로 진행)."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, days: int = 0, hours: int = 0) -> None:
        self.now = self.now + timedelta(days=days, hours=hours)


def make_descriptor(
    key: str = "yt:playlist:PL1",
    kind: SourceKind = SourceKind.VIDEO_PLAYLIST,
    cadence: Cadence = Cadence.DAILY,
    **kwargs: Any,
) -> SourceDescriptor:
    """SourceDescriptor 생성 헬퍼."""
    kwargs.setdefault("source_id", "PL1")
    return SourceDescriptor(key=key, kind=kind, cadence=cadence, **kwargs)


def make_item(item_id: str = "yt:abc123", **kwargs: Any) -> Item:
    """Item 생성 헬퍼."""
    defaults: dict[str, Any] = {
        "title": "Test Video",
        "url": "https://www.youtube.com/watch?v=abc123",
        "source_type": SourceKind.VIDEO_PLAYLIST,
        "source_key": "yt:playlist:PL1",
        "ingested_at": datetime(2025, 1, 1, tzinfo=UTC),
    }
    defaults.update(kwargs)
    return Item(id=item_id, **defaults)


def make_call_result(
    text: str = "ok",
    provider_id: str = "openai",
    model: str = "gpt-4o-mini",
    input_tokens: int = 10,
    output_tokens: int = 5,
) -> ProviderCallResult:
    """ProviderCallResult 생성 헬퍼."""
    return ProviderCallResult(
        text=text,
        provider_id=provider_id,
        model=model,
        tokens_used=TokenUsage(input_tokens=input_tokens, output_tokens=output_tokens),
    )
