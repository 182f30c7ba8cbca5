"""Project model for classification targets."""

from pydantic import BaseModel, Field


class Project(BaseModel):
    """분류 대상 프로젝트.

    Config file: projects.json
    """

    key: str = Field(..., min_length=1, description="프로젝트 키")
    name: str = Field(..., description="프로젝트 이름")
    summary: str | None = Field(None, description="프로젝트 설명")
    goals: list[str] = Field(default_factory=list, description="프로젝트 목표")
    active: bool = Field(True, description="분류 대상 여부")
