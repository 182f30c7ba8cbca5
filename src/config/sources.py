"""Loaders for JSON configuration files.

sources.json, models.json, projects.json을 pydantic 모델로 검증해 읽습니다.
"""

import json
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import BaseModel, Field, ValidationError

from src.errors import ConfigurationError
from src.models.project import Project
from src.models.provider import ProviderCandidate
from src.models.source import SourceDescriptor

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class SourcesFile(BaseModel):
    """sources.json 레이아웃."""

    sources: list[SourceDescriptor] = Field(default_factory=list)


class ModelsFile(BaseModel):
    """models.json 레이아웃 (용도 → 후보 목록)."""

    enrich: list[ProviderCandidate] = Field(default_factory=list)
    classify: list[ProviderCandidate] = Field(default_factory=list)


class ProjectsFile(BaseModel):
    """projects.json 레이아웃."""

    projects: list[Project] = Field(default_factory=list)


def _read_json(path: str | Path) -> Any | None:
    """JSON 파일 읽기. 파일이 없으면 None.

    Raises:
        ConfigurationError: JSON이 아닌 경우.
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e


def _validate(model: type[ModelT], data: Any, path: str | Path) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid config file {path}: {e}") from e


def load_source_descriptors(path: str | Path) -> list[SourceDescriptor]:
    """소스 설정 로드 (파일 순서 = 처리 순서).

    Args:
        path: sources.json 경로.

    Returns:
        SourceDescriptor 목록. 파일이 없으면 빈 목록.

    Raises:
        ConfigurationError: 형식 오류 또는 중복 키.
    """
    data = _read_json(path)
    if data is None:
        logger.warning("sources_config_missing", path=str(path))
        return []

    descriptors = _validate(SourcesFile, data, path).sources

    seen: set[str] = set()
    for descriptor in descriptors:
        if descriptor.key in seen:
            raise ConfigurationError(f"Duplicate source key: {descriptor.key}")
        seen.add(descriptor.key)

    return descriptors


def load_model_candidates(path: str | Path) -> ModelsFile:
    """용도별 프로바이더 후보 로드.

    Raises:
        ConfigurationError: 파일이 없거나 형식 오류.
    """
    data = _read_json(path)
    if data is None:
        raise ConfigurationError(f"Models config not found: {path}")
    return _validate(ModelsFile, data, path)


def load_projects(path: str | Path) -> list[Project]:
    """활성 프로젝트 로드. 파일이 없으면 빈 목록 (분류 스테이지 생략)."""
    data = _read_json(path)
    if data is None:
        logger.warning("projects_config_missing", path=str(path))
        return []
    return [p for p in _validate(ProjectsFile, data, path).projects if p.active]
