"""Shared types for source fetchers.

모든 Fetcher는 (SourceDescriptor, since) → RawItem 이터레이터를 반환하는 순수 함수이며,
수집 실패는 SourceFetchError로 알립니다.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol

import httpx

from src.models.source import SourceDescriptor


class SourceFetchError(Exception):
    """소스 수집 실패 (네트워크/HTTP/파싱 오류)."""

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(f"{message} (url={url})" if url else message)


@dataclass(frozen=True)
class RawItem:
    """Fetcher가 반환하는 후보 아이템."""

    source_local_id: str
    title: str
    url: str | None
    published_at: datetime | None
    author: str | None = None
    tags: tuple[str, ...] = ()
    raw: dict[str, Any] | None = field(default=None, compare=False, repr=False)


class Fetcher(Protocol):
    """소스 종류별 수집기."""

    def fetch(
        self, descriptor: SourceDescriptor, since: datetime | None
    ) -> Iterator[RawItem]:
        """후보 아이템을 반환 순서대로 (페이지 단위로 지연) 생성.

        Raises:
            SourceFetchError: 수집 실패.
        """
        ...


def get_json(
    client: httpx.Client,
    url: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> dict[str, Any]:
    """GET 요청 후 JSON object 반환.

    Raises:
        SourceFetchError: 네트워크 오류, 2xx가 아닌 응답, JSON이 아닌 응답.
    """
    try:
        response = client.get(url, params=params, headers=headers)
    except httpx.TimeoutException as e:
        raise SourceFetchError(f"Timeout: {e}", url=url) from e
    except httpx.HTTPError as e:
        raise SourceFetchError(f"Network error: {e}", url=url) from e

    if not response.is_success:
        raise SourceFetchError(
            f"HTTP {response.status_code} {response.text[:200]}".strip(),
            url=url,
            status_code=response.status_code,
        )

    try:
        data = response.json()
    except ValueError as e:
        raise SourceFetchError("Invalid JSON response", url=url) from e

    if not isinstance(data, dict):
        raise SourceFetchError("Unexpected JSON payload", url=url)
    return data


def parse_datetime(value: str | None) -> datetime | None:
    """ISO 8601 문자열 파싱 (타임존 없으면 UTC). 실패 시 None."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
