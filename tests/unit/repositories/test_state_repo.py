"""Tests for StateRepository and UsageRepository."""

import json
from datetime import UTC, date, datetime
from pathlib import Path

from src.adapters.json_store import JsonDocumentStore
from src.models.source import Cadence, SourceState
from src.repositories.state_repo import StateRepository
from src.repositories.usage_repo import UsageRepository
from tests.utils import make_call_result, make_descriptor


class TestStateRepository:
    """Tests for StateRepository."""

    def test_unknown_source_gets_initial_state(self, state_repo: StateRepository) -> None:
        """저장된 상태가 없으면 초기 상태 (저장하지 않음)."""
        descriptor = make_descriptor(key="weekly", cadence=Cadence.WEEKLY_ONCE)

        state = state_repo.get(descriptor)

        assert state.bootstrap_pending is True
        assert not state_repo.exists("weekly")

    def test_put_and_get(self, state_repo: StateRepository) -> None:
        descriptor = make_descriptor(key="s1")
        state = SourceState(consecutive_failures=2, seen_ids=["a", "b"])

        state_repo.put("s1", state)

        loaded = state_repo.get(descriptor)
        assert loaded.consecutive_failures == 2
        assert loaded.seen_ids == ["a", "b"]

    def test_persisted_layout(self, tmp_path: Path) -> None:
        """sources 컬렉션에 camelCase 레코드."""
        path = tmp_path / "ingest-state.json"
        repo = StateRepository(JsonDocumentStore(path))
        repo.put(
            "raindrop:0",
            SourceState(
                last_run_at=datetime(2025, 1, 6, tzinfo=UTC),
                retry_not_before_date=date(2025, 1, 7),
                consecutive_failures=1,
            ),
        )

        data = json.loads(path.read_text())
        record = data["sources"]["raindrop:0"]
        assert record["consecutiveFailures"] == 1
        assert record["retryNotBeforeDate"] == "2025-01-07"
        assert record["seenIds"] == []

    def test_get_reconciles_bootstrap(self, state_repo: StateRepository) -> None:
        """주기가 바뀐 소스는 bootstrap 해제."""
        state_repo.put("s1", SourceState(bootstrap_pending=True))

        state = state_repo.get(make_descriptor(key="s1", cadence=Cadence.DAILY))

        assert state.bootstrap_pending is False

    def test_all_states(self, state_repo: StateRepository) -> None:
        state_repo.put("a", SourceState())
        state_repo.put("b", SourceState(consecutive_failures=1))

        states = state_repo.all_states()

        assert list(states) == ["a", "b"]
        assert states["b"].consecutive_failures == 1


class TestUsageRepository:
    """Tests for UsageRepository."""

    def test_records_usage_by_stage_and_model(self, tmp_path: Path) -> None:
        repo = UsageRepository(JsonDocumentStore(tmp_path / "usage.json"))
        repo.start_run("run1", started_at=datetime(2025, 1, 6, tzinfo=UTC))

        repo.record("run1", "enrich", "yt:a", make_call_result(input_tokens=10, output_tokens=5))
        repo.record("run1", "enrich", "yt:b", make_call_result(input_tokens=1, output_tokens=1))
        repo.record(
            "run1",
            "classify",
            "yt:a",
            make_call_result(provider_id="deepseek", model="deepseek-chat"),
        )
        repo.finish_run("run1")

        run = repo.get_by_id("run1")
        assert run is not None
        assert run.finished is True
        assert run.ended_at is not None
        enrich = run.stages["enrich"]["gpt-4o-mini"]
        assert enrich.total == 17
        assert [e.item_id for e in enrich.items] == ["yt:a", "yt:b"]
        assert run.stages["classify"]["deepseek-chat"].items[0].provider_id == "deepseek"
        assert run.total_tokens() == 32

    def test_finish_unknown_run_is_noop(self, tmp_path: Path) -> None:
        repo = UsageRepository(JsonDocumentStore(tmp_path / "usage.json"))

        repo.finish_run("missing")

        assert repo.count() == 0
