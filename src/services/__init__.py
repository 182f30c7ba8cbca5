"""Business logic services."""

from src.services.budget_guard import BudgetGuard
from src.services.content_pipeline import (
    ContentPipeline,
    PipelineResult,
    build_pipeline,
)
from src.services.provider_router import AllProvidersFailedError, ProviderRouter
from src.services.sync_scheduler import SyncDecision, SyncReport, SyncScheduler, decide

__all__ = [
    "AllProvidersFailedError",
    "BudgetGuard",
    "ContentPipeline",
    "PipelineResult",
    "ProviderRouter",
    "SyncDecision",
    "SyncReport",
    "SyncScheduler",
    "build_pipeline",
    "decide",
]
