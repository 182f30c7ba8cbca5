"""Run the knowledge pipeline once.

Usage: python -m src

설정/저장소 오류(PipelineFatalError)일 때만 종료 코드 1을 반환합니다.
"""

import sys

from src.config.logging import configure_logging, get_logger
from src.config.settings import get_settings
from src.errors import PipelineFatalError
from src.services.content_pipeline import build_pipeline


def main() -> int:
    settings = get_settings()
    configure_logging(json_logs=settings.LOG_JSON, level=settings.LOG_LEVEL)
    logger = get_logger(__name__)

    try:
        pipeline = build_pipeline(settings)
        result = pipeline.run()
    except PipelineFatalError as e:
        logger.error("pipeline_fatal", error=str(e), error_type=type(e).__name__)
        return 1

    logger.info("run_summary", **result.to_dict())
    return 0


if __name__ == "__main__":
    sys.exit(main())
