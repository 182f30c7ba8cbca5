"""Tests for JSON config loaders."""

import json
from pathlib import Path

import pytest

from src.config.sources import (
    load_model_candidates,
    load_projects,
    load_source_descriptors,
)
from src.errors import ConfigurationError
from src.models.provider import ProviderName
from src.models.source import Cadence, SourceKind


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestLoadSourceDescriptors:
    """Tests for load_source_descriptors."""

    def test_loads_in_file_order(self, tmp_path: Path) -> None:
        """파일 순서가 처리 순서."""
        path = _write(
            tmp_path / "sources.json",
            {
                "sources": [
                    {
                        "key": "raindrop:0",
                        "kind": "bookmark-collection",
                        "source_id": "0",
                        "cadence": "daily",
                    },
                    {
                        "key": "yt:channel:@fireship",
                        "kind": "video-channel",
                        "source_id": "@fireship",
                        "cadence": "weekly-once",
                        "lookback_window_days": 7,
                    },
                ]
            },
        )

        descriptors = load_source_descriptors(path)

        assert [d.key for d in descriptors] == ["raindrop:0", "yt:channel:@fireship"]
        assert descriptors[0].kind == SourceKind.BOOKMARK_COLLECTION
        assert descriptors[1].cadence == Cadence.WEEKLY_ONCE
        assert descriptors[1].lookback_window_days == 7

    def test_missing_file_returns_empty(self, tmp_path: Path) -> None:
        """파일이 없으면 소스 없음."""
        assert load_source_descriptors(tmp_path / "nope.json") == []

    def test_duplicate_keys_raise(self, tmp_path: Path) -> None:
        """중복 키는 설정 오류."""
        source = {"key": "dup", "kind": "video-playlist", "source_id": "PL1"}
        path = _write(tmp_path / "sources.json", {"sources": [source, source]})

        with pytest.raises(ConfigurationError, match="Duplicate source key: dup"):
            load_source_descriptors(path)

    def test_invalid_json_raises(self, tmp_path: Path) -> None:
        """JSON이 아니면 설정 오류."""
        path = tmp_path / "sources.json"
        path.write_text("{not json", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            load_source_descriptors(path)

    def test_unknown_cadence_raises(self, tmp_path: Path) -> None:
        """알 수 없는 주기는 설정 오류."""
        path = _write(
            tmp_path / "sources.json",
            {
                "sources": [
                    {
                        "key": "s",
                        "kind": "video-playlist",
                        "source_id": "PL1",
                        "cadence": "hourly",
                    }
                ]
            },
        )

        with pytest.raises(ConfigurationError):
            load_source_descriptors(path)

    def test_negative_lookback_raises(self, tmp_path: Path) -> None:
        """lookback_window_days는 0 이상."""
        path = _write(
            tmp_path / "sources.json",
            {
                "sources": [
                    {
                        "key": "s",
                        "kind": "video-playlist",
                        "source_id": "PL1",
                        "lookback_window_days": -1,
                    }
                ]
            },
        )

        with pytest.raises(ConfigurationError):
            load_source_descriptors(path)


class TestLoadModelCandidates:
    """Tests for load_model_candidates."""

    def test_loads_candidates_per_purpose(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "models.json",
            {
                "enrich": [
                    {"provider": "openrouter", "model": "meta-llama/llama-3.1-8b-instruct", "est_cost": 0.001},
                    {"provider": "gemini", "model": "gemini-2.5-flash-lite"},
                ],
                "classify": [{"provider": "openai", "model": "gpt-4o-mini"}],
            },
        )

        models = load_model_candidates(path)

        assert [c.provider for c in models.enrich] == [
            ProviderName.OPENROUTER,
            ProviderName.GEMINI,
        ]
        assert models.enrich[0].est_cost == 0.001
        assert models.classify[0].model == "gpt-4o-mini"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """모델 설정이 없으면 설정 오류."""
        with pytest.raises(ConfigurationError, match="Models config not found"):
            load_model_candidates(tmp_path / "models.json")

    def test_unknown_provider_raises(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path / "models.json",
            {"enrich": [{"provider": "anthropic", "model": "x"}]},
        )

        with pytest.raises(ConfigurationError):
            load_model_candidates(path)


class TestLoadProjects:
    """Tests for load_projects."""

    def test_only_active_projects(self, tmp_path: Path) -> None:
        """비활성 프로젝트는 제외."""
        path = _write(
            tmp_path / "projects.json",
            {
                "projects": [
                    {"key": "kb", "name": "Knowledge Base", "goals": ["search"]},
                    {"key": "old", "name": "Old", "active": False},
                ]
            },
        )

        projects = load_projects(path)

        assert [p.key for p in projects] == ["kb"]
        assert projects[0].goals == ["search"]

    def test_missing_file_returns_empty(self, tmp_path: Path) -> None:
        assert load_projects(tmp_path / "projects.json") == []
