"""Collector tools for source collection.

Raindrop, YouTube 플레이리스트/채널 수집 도구들.
"""

from src.agent.domains.collector.tools.base import (
    Fetcher,
    RawItem,
    SourceFetchError,
)
from src.agent.domains.collector.tools.raindrop_tool import RaindropFetcher
from src.agent.domains.collector.tools.youtube_tool import (
    YouTubeChannelFetcher,
    YouTubePlaylistFetcher,
    extract_video_id,
)

__all__ = [
    "Fetcher",
    "RaindropFetcher",
    "RawItem",
    "SourceFetchError",
    "YouTubeChannelFetcher",
    "YouTubePlaylistFetcher",
    "extract_video_id",
]
