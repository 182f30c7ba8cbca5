"""YouTube playlist and channel collection tools.

플레이리스트는 YouTube Data API(playlistItems)로, 채널은 핸들을 channel ID로
해석한 뒤 채널 RSS 피드(feedparser)로 수집합니다.
"""

import re
from collections.abc import Iterator
from contextlib import nullcontext
from datetime import UTC, datetime
from typing import Any
from urllib.parse import parse_qs, urlparse

import feedparser
import httpx
import structlog

from src.adapters.json_store import JsonDocumentStore
from src.agent.domains.collector.tools.base import (
    RawItem,
    SourceFetchError,
    get_json,
    parse_datetime,
)
from src.models.source import SourceDescriptor

logger = structlog.get_logger(__name__)

YOUTUBE_API_URL = "https://www.googleapis.com/youtube/v3"
YOUTUBE_FEED_URL = "https://www.youtube.com/feeds/videos.xml"

# UC로 시작하는 24자 channel ID
CHANNEL_ID_PATTERN = re.compile(r"^UC[a-zA-Z0-9_-]{22}$")
# 11자 video ID
VIDEO_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{11}$")

HANDLE_CACHE_COLLECTION = "handles"


def extract_video_id(url_or_id: str | None) -> str | None:
    """YouTube URL 또는 ID에서 video ID 추출.

    Args:
        url_or_id: YouTube URL 또는 video ID.

    Returns:
        video ID 또는 None.
    """
    if not url_or_id:
        return None

    if VIDEO_ID_PATTERN.match(url_or_id):
        return url_or_id

    parsed = urlparse(url_or_id)

    # youtube.com/watch?v=VIDEO_ID, /shorts/VIDEO_ID, /embed/VIDEO_ID
    if "youtube.com" in parsed.netloc:
        if parsed.path == "/watch":
            video_ids = parse_qs(parsed.query).get("v")
            if video_ids:
                return video_ids[0]
        for prefix in ("/embed/", "/shorts/"):
            if parsed.path.startswith(prefix):
                return parsed.path.split("/")[2] or None

    # youtu.be/VIDEO_ID
    if "youtu.be" in parsed.netloc:
        return parsed.path.lstrip("/").split("/")[0] or None

    return None


def watch_url(video_id: str) -> str:
    """정규화된 영상 URL."""
    return f"https://www.youtube.com/watch?v={video_id}"


def _client_context(http_client: httpx.Client | None, timeout: float) -> Any:
    if http_client is not None:
        return nullcontext(http_client)
    return httpx.Client(timeout=timeout, follow_redirects=True)


class YouTubePlaylistFetcher:
    """YouTube 플레이리스트 수집기 (pageToken 페이지네이션)."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize playlist fetcher.

        Args:
            api_key: YouTube Data API 키.
            timeout: 요청 타임아웃 (초).
            http_client: 주입할 httpx.Client (테스트용).
        """
        self._api_key = api_key
        self.timeout = timeout
        self._http = http_client

    def fetch(
        self, descriptor: SourceDescriptor, since: datetime | None
    ) -> Iterator[RawItem]:
        """플레이리스트 항목 생성.

        since는 플레이리스트에 추가된 시각(snippet.publishedAt) 기준입니다.

        Raises:
            SourceFetchError: 수집 실패.
        """
        url = f"{YOUTUBE_API_URL}/playlistItems"
        page_token: str | None = None

        with _client_context(self._http, self.timeout) as client:
            while True:
                params: dict[str, Any] = {
                    "part": "snippet,contentDetails",
                    "maxResults": 50,
                    "playlistId": descriptor.source_id,
                    "key": self._api_key,
                }
                if page_token:
                    params["pageToken"] = page_token

                data = get_json(client, url, params=params)

                for record in data.get("items") or []:
                    item = self._to_raw_item(record)
                    if item is None:
                        continue
                    if since and item.published_at and item.published_at < since:
                        continue
                    yield item

                page_token = data.get("nextPageToken")
                if not page_token:
                    break

    @staticmethod
    def _to_raw_item(record: dict[str, Any]) -> RawItem | None:
        snippet = record.get("snippet") or {}
        details = record.get("contentDetails") or {}
        video_id = details.get("videoId") or (snippet.get("resourceId") or {}).get(
            "videoId"
        )
        if not video_id:
            return None

        return RawItem(
            source_local_id=video_id,
            title=snippet.get("title") or "(untitled)",
            url=watch_url(video_id),
            published_at=parse_datetime(
                snippet.get("publishedAt") or details.get("videoPublishedAt")
            ),
            author=snippet.get("videoOwnerChannelTitle") or snippet.get("channelTitle"),
            tags=("youtube",),
            raw=record,
        )


class YouTubeChannelFetcher:
    """YouTube 채널 수집기 (채널 RSS 피드).

    source_id는 channel ID(UC...), 핸들(@name 또는 name), 채널 URL 중 하나입니다.
    핸들 → channel ID 매핑은 handle_cache에 저장해 재사용합니다.
    """

    def __init__(
        self,
        api_key: str | None = None,
        handle_cache: JsonDocumentStore | None = None,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        """Initialize channel fetcher.

        Args:
            api_key: YouTube Data API 키 (없으면 채널 페이지 HTML에서 추출).
            handle_cache: 핸들 캐시 저장소.
            timeout: 요청 타임아웃 (초).
            http_client: 주입할 httpx.Client (테스트용).
        """
        self._api_key = api_key
        self._cache = handle_cache
        self.timeout = timeout
        self._http = http_client

    def fetch(
        self, descriptor: SourceDescriptor, since: datetime | None
    ) -> Iterator[RawItem]:
        """채널 최신 영상 생성 (RSS 피드는 최근 15개 내외).

        Raises:
            SourceFetchError: channel ID 해석 실패, 피드 수집/파싱 실패.
        """
        with _client_context(self._http, self.timeout) as client:
            channel_id = self.resolve_channel_id(client, descriptor.source_id)
            feed = self._fetch_feed(client, channel_id)

        handle = descriptor.source_id if not CHANNEL_ID_PATTERN.match(
            descriptor.source_id
        ) else None

        for entry in feed.entries:
            video_id = entry.get("yt_videoid") or extract_video_id(entry.get("link"))
            if not video_id:
                continue

            published_at = _struct_time_to_datetime(
                entry.get("published_parsed")
            ) or parse_datetime(entry.get("published"))
            if since and published_at and published_at < since:
                continue

            yield RawItem(
                source_local_id=video_id,
                title=entry.get("title") or "(untitled)",
                url=entry.get("link") or watch_url(video_id),
                published_at=published_at,
                author=f"@{handle.lstrip('@')}" if handle else entry.get("author"),
                tags=("youtube",),
                raw={"id": entry.get("id"), "link": entry.get("link")},
            )

    def resolve_channel_id(self, client: httpx.Client, source_id: str) -> str:
        """source_id를 channel ID로 해석.

        순서: channel ID 그대로 → URL의 /channel/ 경로 → 캐시 → Data API 검색
        → 채널 페이지 HTML.

        Raises:
            SourceFetchError: 해석 실패.
        """
        source_id = source_id.strip()
        if CHANNEL_ID_PATTERN.match(source_id):
            return source_id

        handle = _handle_from(source_id)
        if handle is None:
            path = urlparse(source_id).path
            if "/channel/" in path:
                candidate = path.split("/channel/")[1].split("/")[0]
                if CHANNEL_ID_PATTERN.match(candidate):
                    return candidate
            raise SourceFetchError(f"Unrecognized channel reference: {source_id}")

        if self._cache is not None:
            cached = self._cache.get(HANDLE_CACHE_COLLECTION, handle)
            if cached and cached.get("channelId"):
                return cached["channelId"]

        if self._api_key:
            channel_id = self._search_channel_id(client, handle)
        else:
            channel_id = self._scrape_channel_id(client, handle)

        if not channel_id:
            raise SourceFetchError(f"No channel ID for handle @{handle}")

        if self._cache is not None:
            self._cache.set(
                HANDLE_CACHE_COLLECTION,
                handle,
                {"channelId": channel_id, "resolvedAt": datetime.now(UTC).isoformat()},
            )
        logger.info("youtube_handle_resolved", handle=handle, channel_id=channel_id)
        return channel_id

    def _search_channel_id(self, client: httpx.Client, handle: str) -> str | None:
        """Data API search로 핸들 해석."""
        data = get_json(
            client,
            f"{YOUTUBE_API_URL}/search",
            params={
                "part": "snippet",
                "type": "channel",
                "q": f"@{handle}",
                "maxResults": 1,
                "key": self._api_key,
            },
        )
        items = data.get("items") or []
        if not items:
            return None
        hit = items[0]
        return (hit.get("snippet") or {}).get("channelId") or (
            hit.get("id") or {}
        ).get("channelId")

    def _scrape_channel_id(self, client: httpx.Client, handle: str) -> str | None:
        """채널 페이지 HTML에서 channel ID 추출."""
        url = f"https://www.youtube.com/@{handle}"
        try:
            response = client.get(url)
        except httpx.HTTPError as e:
            raise SourceFetchError(f"Network error: {e}", url=url) from e
        if not response.is_success:
            raise SourceFetchError(
                f"HTTP {response.status_code}", url=url, status_code=response.status_code
            )

        # 패턴: "channelId":"UC..."
        match = re.search(r'"channelId":"(UC[a-zA-Z0-9_-]{22})"', response.text)
        if match:
            return match.group(1)

        # 대체 패턴: canonical URL
        match = re.search(
            r'<link rel="canonical" href="[^"]*?/channel/(UC[a-zA-Z0-9_-]{22})"',
            response.text,
        )
        return match.group(1) if match else None

    def _fetch_feed(self, client: httpx.Client, channel_id: str) -> Any:
        """채널 RSS 피드 수집 후 feedparser로 파싱."""
        url = f"{YOUTUBE_FEED_URL}?channel_id={channel_id}"
        try:
            response = client.get(url)
        except httpx.HTTPError as e:
            raise SourceFetchError(f"Network error: {e}", url=url) from e
        if not response.is_success:
            raise SourceFetchError(
                f"HTTP {response.status_code}", url=url, status_code=response.status_code
            )

        feed = feedparser.parse(response.content)
        if feed.bozo and not feed.entries:
            raise SourceFetchError(
                f"Failed to parse channel feed: {feed.bozo_exception}", url=url
            )
        return feed


def _handle_from(source_id: str) -> str | None:
    """@handle, handle, 또는 youtube.com/@handle URL에서 핸들 추출."""
    if source_id.startswith("@"):
        return source_id[1:] or None
    if "://" not in source_id and "/" not in source_id:
        return source_id or None

    parsed = urlparse(source_id)
    if "youtube.com" in parsed.netloc and parsed.path.startswith("/@"):
        return parsed.path[2:].split("/")[0] or None
    return None


def _struct_time_to_datetime(value: Any) -> datetime | None:
    """feedparser의 *_parsed (UTC struct_time) 변환."""
    if not value:
        return None
    try:
        return datetime(*value[:6], tzinfo=UTC)
    except (TypeError, ValueError):
        return None
