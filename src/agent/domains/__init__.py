"""Agent domain modules for the knowledge pipeline.

This module contains domain-specific tools:
- collector: Source fetching (Raindrop, YouTube playlists and channels)
- processor: Item processing (summarize, classify)
"""

__all__: list[str] = []
