"""Pytest configuration and shared fixtures."""

from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path

import pytest

from src.adapters.json_store import JsonDocumentStore
from src.repositories.item_repo import ItemRepository
from src.repositories.state_repo import StateRepository
from tests.utils import FakeClock


@pytest.fixture(autouse=True)
def reset_settings_singleton() -> Iterator[None]:
    """get_settings() 싱글톤 초기화."""
    import src.config.settings as settings_module

    settings_module._settings = None
    yield
    settings_module._settings = None


@pytest.fixture
def clock() -> FakeClock:
    """2025-01-06 09:00 UTC에서 시작하는 시계."""
    return FakeClock(datetime(2025, 1, 6, 9, 0, tzinfo=UTC))


@pytest.fixture
def item_store(tmp_path: Path) -> JsonDocumentStore:
    """knowledge.json 저장소."""
    return JsonDocumentStore(tmp_path / "knowledge.json")


@pytest.fixture
def state_store(tmp_path: Path) -> JsonDocumentStore:
    """ingest-state.json 저장소."""
    return JsonDocumentStore(tmp_path / "cache" / "ingest-state.json")


@pytest.fixture
def item_repo(item_store: JsonDocumentStore) -> ItemRepository:
    return ItemRepository(item_store)


@pytest.fixture
def state_repo(state_store: JsonDocumentStore) -> StateRepository:
    return StateRepository(state_store)
