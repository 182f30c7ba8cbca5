"""Configuration module."""

from src.config.logging import bind_run_context, configure_logging, get_logger
from src.config.settings import Settings, get_settings
from src.config.sources import (
    ModelsFile,
    load_model_candidates,
    load_projects,
    load_source_descriptors,
)

__all__ = [
    "ModelsFile",
    "Settings",
    "bind_run_context",
    "configure_logging",
    "get_logger",
    "get_settings",
    "load_model_candidates",
    "load_projects",
    "load_source_descriptors",
]
