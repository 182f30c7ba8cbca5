"""Tests for the command-line entry point."""

from unittest.mock import MagicMock, patch

from src.__main__ import main
from src.errors import ConfigurationError


class TestMain:
    """Tests for main()."""

    def test_success_returns_zero(self) -> None:
        pipeline = MagicMock()
        pipeline.run.return_value.to_dict.return_value = {"run_id": "abc"}
        with (
            patch("src.__main__.configure_logging"),
            patch("src.__main__.build_pipeline", return_value=pipeline),
        ):
            assert main() == 0

        pipeline.run.assert_called_once()

    def test_fatal_error_returns_one(self) -> None:
        """설정 오류만 종료 코드 1."""
        with (
            patch("src.__main__.configure_logging"),
            patch(
                "src.__main__.build_pipeline",
                side_effect=ConfigurationError("DEEPSEEK_API_KEY is required"),
            ),
        ):
            assert main() == 1
