"""Structured logging configuration using structlog.

파이프라인 실행 로그는 한 줄에 하나의 이벤트(JSON)로 출력되며,
run_id는 contextvars로 모든 이벤트에 포함됩니다.
"""

import logging
import re
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

# YouTube Data API는 key를 쿼리 문자열로 받으므로 URL이 섞인 오류 메시지에 노출될 수 있음
_SECRET_QUERY = re.compile(r"([?&](?:key|api_key|access_token|token)=)[^&\s\"']+")
_SECRET_FIELDS = frozenset({"api_key", "token", "authorization"})

NOISY_LOGGERS = ("httpx", "httpcore", "google_genai")


def redact_secrets(_: WrappedLogger, __: str, event_dict: EventDict) -> EventDict:
    """자격 증명으로 보이는 필드 값과 URL 쿼리 파라미터를 가림."""
    for field, value in event_dict.items():
        if field.lower() in _SECRET_FIELDS and value:
            event_dict[field] = "***"
        elif isinstance(value, str) and "=" in value:
            event_dict[field] = _SECRET_QUERY.sub(r"\1***", value)
    return event_dict


def configure_logging(json_logs: bool = True, level: str | int = logging.INFO) -> None:
    """Configure structlog for pipeline runs.

    Args:
        json_logs: True면 JSON lines, False면 콘솔 형식.
        level: 최소 로그 레벨 ("INFO" 같은 이름도 허용).
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_run_context(**context: Any) -> None:
    """실행 단위 컨텍스트로 교체 (이전 실행의 run_id 등은 제거)."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str | None = None, **initial_context: Any) -> Any:
    """structlog 로거 (초기 컨텍스트 바인딩 가능)."""
    logger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger
