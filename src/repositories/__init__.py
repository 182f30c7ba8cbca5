"""Repository layer for JSON document store access.

This module exports all repository classes for data persistence.
"""

from src.repositories.base import BaseRepository
from src.repositories.item_repo import DuplicateItemError, ItemRepository
from src.repositories.state_repo import StateRepository
from src.repositories.usage_repo import UsageRepository

__all__ = [
    "BaseRepository",
    "DuplicateItemError",
    "ItemRepository",
    "StateRepository",
    "UsageRepository",
]
