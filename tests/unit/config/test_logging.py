"""Tests for logging configuration."""

import json
from collections.abc import Iterator

import pytest
import structlog

from src.config.logging import (
    bind_run_context,
    configure_logging,
    get_logger,
    redact_secrets,
)


@pytest.fixture(autouse=True)
def clean_context() -> Iterator[None]:
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def _last_event(capsys: pytest.CaptureFixture[str]) -> dict:
    lines = [line for line in capsys.readouterr().out.splitlines() if line.strip()]
    return json.loads(lines[-1])


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_event_fields(self, capsys: pytest.CaptureFixture[str]) -> None:
        """JSON 한 줄에 event, level, timestamp."""
        configure_logging(json_logs=True)

        get_logger(__name__).info("source_skipped", source_key="raindrop:0", reason="cadence")

        event = _last_event(capsys)
        assert event["event"] == "source_skipped"
        assert event["level"] == "info"
        assert event["reason"] == "cadence"
        assert "timestamp" in event

    def test_run_id_on_every_event(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_logs=True)
        bind_run_context(run_id="abc123")

        structlog.get_logger("src.services").info("pipeline_started")

        assert _last_event(capsys)["run_id"] == "abc123"

    def test_level_name_filters(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_logs=True, level="warning")
        logger = get_logger()

        logger.info("item_ingested")
        logger.warning("source_sync_failed")

        out = capsys.readouterr().out
        assert "item_ingested" not in out
        assert "source_sync_failed" in out

    def test_get_logger_binds_initial_context(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(json_logs=True)

        get_logger(__name__, stage="enrich").info("stage_skipped")

        assert _last_event(capsys)["stage"] == "enrich"

    def test_console_output(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_logs=False)

        get_logger().info("application_started")

        assert "application_started" in capsys.readouterr().out

    def test_redacts_before_rendering(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(json_logs=True)

        get_logger().warning(
            "source_sync_failed",
            error=(
                "Network error "
                "(url=https://www.googleapis.com/youtube/v3/search?key=AIzaSECRET&q=x)"
            ),
        )

        error = _last_event(capsys)["error"]
        assert "AIzaSECRET" not in error
        assert "key=***&q=x" in error


class TestRedactSecrets:
    """Tests for redact_secrets."""

    def test_masks_credential_fields(self) -> None:
        event = redact_secrets(
            None, "info", {"event": "x", "api_key": "sk-123", "Authorization": "Bearer t"}
        )

        assert event["api_key"] == "***"
        assert event["Authorization"] == "***"

    def test_masks_query_parameters(self) -> None:
        event = redact_secrets(
            None, "info", {"event": "x", "url": "https://h/p?part=snippet&key=abc&token=def"}
        )

        assert event["url"] == "https://h/p?part=snippet&key=***&token=***"

    def test_leaves_other_values(self) -> None:
        event = redact_secrets(
            None, "info", {"event": "x", "source_key": "yt:channel:@x", "count": 3}
        )

        assert event == {"event": "x", "source_key": "yt:channel:@x", "count": 3}


class TestRunContext:
    """Test run-scoped context binding."""

    def test_bind_run_context_replaces_previous_run(self) -> None:
        """bind_run_context는 이전 실행 컨텍스트를 지우고 새로 바인딩."""
        bind_run_context(run_id="first", extra="stale")
        bind_run_context(run_id="second")

        assert structlog.contextvars.get_contextvars() == {"run_id": "second"}
