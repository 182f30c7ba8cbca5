"""Raindrop bookmark collection tool.

Raindrop REST API로 북마크 컬렉션을 페이지 단위로 수집합니다.
"""

from collections.abc import Iterator
from contextlib import nullcontext
from datetime import datetime
from typing import Any

import httpx
import structlog

from src.agent.domains.collector.tools.base import (
    RawItem,
    SourceFetchError,
    get_json,
    parse_datetime,
)
from src.models.source import SourceDescriptor

logger = structlog.get_logger(__name__)

RAINDROP_API_URL = "https://api.raindrop.io/rest/v1/raindrops"


def to_raw_item(record: dict[str, Any]) -> RawItem | None:
    """Raindrop 레코드를 RawItem으로 변환. _id가 없으면 None."""
    raindrop_id = record.get("_id")
    if raindrop_id in (None, ""):
        return None

    tags = record.get("tags")
    return RawItem(
        source_local_id=str(raindrop_id),
        title=(record.get("title") or record.get("excerpt") or "(untitled)").strip(),
        url=record.get("link") or None,
        published_at=parse_datetime(record.get("created") or record.get("lastUpdate")),
        author=record.get("domain") or None,
        tags=tuple(tags) if isinstance(tags, list) else (),
        raw=record,
    )


class RaindropFetcher:
    """Raindrop 컬렉션 수집기.

    페이지는 0부터 시작하며 최신순(-created)으로 요청합니다. 빈 페이지,
    count 소진, 또는 since보다 오래된 항목이 나온 페이지에서 멈춥니다.
    """

    def __init__(
        self,
        token: str,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize Raindrop fetcher.

        Args:
            token: Raindrop 액세스 토큰.
            timeout: 요청 타임아웃 (초).
            http_client: 주입할 httpx.Client (테스트용).
        """
        self._token = token
        self.timeout = timeout
        self._http = http_client

    def fetch(
        self, descriptor: SourceDescriptor, since: datetime | None
    ) -> Iterator[RawItem]:
        """컬렉션의 북마크를 최신순으로 생성.

        Args:
            descriptor: 북마크 컬렉션 소스 (source_id = 컬렉션 ID).
            since: 이 시각 이전 항목은 제외 (None이면 전체).

        Yields:
            RawItem.

        Raises:
            SourceFetchError: 수집 실패.
        """
        url = f"{RAINDROP_API_URL}/{descriptor.source_id}"
        headers = {"Authorization": f"Bearer {self._token}"}
        per_page = descriptor.per_page

        client_cm = (
            nullcontext(self._http)
            if self._http is not None
            else httpx.Client(timeout=self.timeout)
        )
        with client_cm as client:
            page = 0
            while True:
                data = get_json(
                    client,
                    url,
                    params={"perpage": per_page, "page": page, "sort": "-created"},
                    headers=headers,
                )
                if data.get("result") is False:
                    raise SourceFetchError(
                        f"Raindrop error: {data.get('errorMessage', 'unknown')}",
                        url=url,
                    )

                batch = data.get("items") or []
                if not batch:
                    break

                reached_older = False
                for record in batch:
                    item = to_raw_item(record)
                    if item is None:
                        logger.warning(
                            "raindrop_record_without_id", source_key=descriptor.key
                        )
                        continue
                    if since and item.published_at and item.published_at < since:
                        reached_older = True
                        continue
                    yield item

                if reached_older:
                    break

                count = data.get("count")
                if isinstance(count, int) and (page + 1) * per_page >= count:
                    break
                if len(batch) < per_page:
                    break
                page += 1
